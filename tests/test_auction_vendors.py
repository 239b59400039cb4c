from auction_vendors import (
    UNKNOWN_PROFILE,
    VENDOR_PROFILES,
    ExtractionStrategy,
    detect_vendor,
    get_profile,
)


def test_detect_vendor_sequential_profile(sequential_text):
    profile = detect_vendor(sequential_text)
    assert profile.name == "Purple Wave"
    assert profile.strategy is ExtractionStrategy.SEQUENTIAL


def test_detect_vendor_table_profile(table_text):
    profile = detect_vendor(table_text)
    assert profile.name == "HiBid"
    assert profile.strategy is ExtractionStrategy.TABLE_BLOCK


def test_detect_vendor_is_case_insensitive():
    assert detect_vendor("PURPLEWAVE.COM invoice").name == "Purple Wave"


def test_hosted_auctioneer_wins_over_platform():
    text = "Schrader Real Estate and Auction Company\nPowered by HiBid"
    assert detect_vendor(text).name == "Schrader Auction"


def test_unknown_vendor_falls_back_to_generic():
    assert detect_vendor("Smith Family Estate Sale") is UNKNOWN_PROFILE
    assert detect_vendor("") is UNKNOWN_PROFILE
    assert UNKNOWN_PROFILE.name == "Unknown"
    assert UNKNOWN_PROFILE.strategy is ExtractionStrategy.GENERIC


def test_profile_names_are_unique():
    names = [p.name for p in VENDOR_PROFILES]
    assert len(names) == len(set(names))


def test_get_profile():
    assert get_profile("hibid").name == "HiBid"
    assert get_profile("nobody") is UNKNOWN_PROFILE
