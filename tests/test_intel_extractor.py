"""
Tests for the intelligence extraction module.
Covers all 5 extraction types, normalisation, deduplication and the
UPI/email split.
"""

import pytest
from app.intel_extractor import (
    extract_phone_numbers,
    extract_bank_accounts,
    extract_upi_ids,
    extract_emails,
    extract_urls,
    extract_all_intelligence,
)


# ── Bank Account Extraction ─────────────────────────────────────

class TestBankAccountExtraction:
    def test_sixteen_digit_account(self):
        assert extract_bank_accounts("Account number is 1234567890123456") == ["1234567890123456"]

    def test_short_numbers_excluded(self):
        assert extract_bank_accounts("Your OTP is 123456") == []

    def test_overlong_run_excluded(self):
        """A 19-digit run is not an account and must not be split into one."""
        assert extract_bank_accounts("ref 1234567890123456789") == []

    def test_boundaries(self):
        text = "acc 123456789 and acc 123456789012345678"
        assert extract_bank_accounts(text) == ["123456789", "123456789012345678"]

    def test_duplicates_reported_once(self):
        assert extract_bank_accounts("123456789012 again 123456789012") == ["123456789012"]


# ── UPI ID Extraction ───────────────────────────────────────────

class TestUpiExtraction:
    def test_known_handle_lower_cased(self):
        assert extract_upi_ids("Pay to Claim@OkICICI now") == ["claim@okicici"]

    def test_unknown_handle_ignored(self):
        assert extract_upi_ids("pay x@randomhandle today") == []

    def test_trailing_full_stop(self):
        assert extract_upi_ids("send it to rahul.k@paytm.") == ["rahul.k@paytm"]

    def test_bank_domain_email_is_not_upi(self):
        assert extract_upi_ids("mail help@sbi.co.in") == []

    def test_multiple_handles(self):
        text = "use a.b@ybl or c_d@axisbank or a.b@YBL"
        assert extract_upi_ids(text) == ["a.b@ybl", "c_d@axisbank"]


# ── Email Extraction ────────────────────────────────────────────

class TestEmailExtraction:
    def test_basic_email_lower_cased(self):
        assert extract_emails("Write to Support@FakeBank.com") == ["support@fakebank.com"]

    def test_bank_domain_email(self):
        assert extract_emails("mail help@sbi.co.in") == ["help@sbi.co.in"]

    def test_upi_not_double_reported(self):
        text = "pay claim@okicici or mail support@fakebank.com"
        assert extract_emails(text) == ["support@fakebank.com"]
        assert extract_upi_ids(text) == ["claim@okicici"]

    def test_no_email(self):
        assert extract_emails("no contact here") == []


# ── URL Extraction ──────────────────────────────────────────────

class TestUrlExtraction:
    def test_casing_preserved_and_trailing_punctuation_dropped(self):
        text = "Click https://Secure-Login.example.com/Verify?id=1."
        assert extract_urls(text) == ["https://Secure-Login.example.com/Verify?id=1"]

    def test_stops_at_closing_bracket(self):
        assert extract_urls("(see http://bit.ly/abc)") == ["http://bit.ly/abc"]

    def test_stops_at_quote(self):
        assert extract_urls('open "https://evil.test/x" now') == ["https://evil.test/x"]

    def test_duplicates_removed(self):
        text = "https://evil.test/a and again https://evil.test/a"
        assert extract_urls(text) == ["https://evil.test/a"]

    def test_bare_domain_not_a_url(self):
        assert extract_urls("visit evil.test/a") == []


# ── Phone Number Extraction ─────────────────────────────────────

class TestPhoneExtraction:
    def test_ten_digit_number(self):
        assert extract_phone_numbers("Call me at 9876543210") == ["9876543210"]

    def test_country_code_separator_stripped(self):
        assert extract_phone_numbers("+91-9876543210") == ["+919876543210"]

    def test_internal_separator(self):
        assert extract_phone_numbers("call 98765 43210") == ["9876543210"]

    def test_formats_deduplicated_after_stripping(self):
        assert extract_phone_numbers("98765-43210 or 9876543210") == ["9876543210"]

    def test_longer_digit_run_is_not_a_phone(self):
        assert extract_phone_numbers("account 123456789012") == []


# ── Full Extraction ─────────────────────────────────────────────

class TestFullExtraction:
    def test_bank_fraud_scenario(self):
        text = """
        Your account number is 1234567890123456.
        Call me at +91-9876543210.
        My UPI ID is scammer.fraud@okaxis.
        Email me at support@fakebank.com.
        Verify at https://sbi-kyc.example/login
        """
        intel = extract_all_intelligence(text)

        assert "1234567890123456" in intel.bank_accounts
        assert intel.phone_numbers == ["+919876543210"]
        assert intel.upi_ids == ["scammer.fraud@okaxis"]
        assert intel.emails == ["support@fakebank.com"]
        assert intel.phishing_urls == ["https://sbi-kyc.example/login"]

    def test_empty_text_yields_empty_sets(self):
        intel = extract_all_intelligence("")
        assert intel.count() == 0
        assert intel.bank_accounts == []
        assert intel.emails == []

    @pytest.mark.parametrize("text", [
        "Congratulations! send details to claim@okicici and transfer to account 123456789012",
        "nothing useful here at all",
        "@@@ http:// 12345 ++91",
    ])
    def test_extraction_is_idempotent(self, text):
        assert extract_all_intelligence(text) == extract_all_intelligence(text)

    def test_items_are_typed_pairs(self):
        intel = extract_all_intelligence("pay claim@okicici, account 123456789012")
        pairs = {(t.value, v) for t, v in intel.items()}
        assert pairs == {("upi_id", "claim@okicici"), ("bank_account", "123456789012")}
