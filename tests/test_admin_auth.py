from ptbooking.services.admin_auth import issue_token, verify_password, verify_token

SECRET = "s3cret"


def test_verify_password():
    assert verify_password("letmein", "letmein")
    assert not verify_password("letmein ", "letmein")
    assert not verify_password("", "letmein")


def test_unconfigured_password_refuses_everyone():
    assert not verify_password("", "")
    assert not verify_password("anything", "")


def test_token_round_trip():
    token = issue_token(SECRET, now=1_000_000)
    assert verify_token(token, SECRET, ttl_sec=60, now=1_000_030)


def test_token_expires():
    token = issue_token(SECRET, now=1_000_000)
    assert not verify_token(token, SECRET, ttl_sec=60, now=1_000_061)


def test_token_from_the_future_rejected():
    token = issue_token(SECRET, now=1_000_000)
    assert not verify_token(token, SECRET, ttl_sec=60, now=999_000)


def test_tampered_token_rejected():
    token = issue_token(SECRET, now=1_000_000)
    nonce, issued_at, signature = token.split(".")

    assert not verify_token(f"{nonce}.1000050.{signature}", SECRET, ttl_sec=60, now=1_000_060)
    assert not verify_token(token, "other-secret", ttl_sec=60, now=1_000_010)


def test_malformed_tokens_rejected():
    for token in (None, "", "abc", "a.b.c", "a.b.c.d"):
        assert not verify_token(token, SECRET, ttl_sec=60, now=1_000_000)


def test_tokens_are_unique():
    assert issue_token(SECRET, now=1) != issue_token(SECRET, now=1)
