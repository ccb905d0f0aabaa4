import time
from datetime import timedelta

import pyotp
import pytest

from core import mfa
from core.geo import EARTH_RADIUS_KM, bounding_box, haversine_km
from core.security import (
    TokenExpiredError,
    TokenInvalidError,
    create_access_token,
    create_refresh_token,
    create_token_pair,
    decode_token,
    get_password_hash,
    subject_id,
    verify_password,
)
from core.uploads import build_filename


def test_password_hashing():
    hashed = get_password_hash("hunter22")
    assert hashed != "hunter22"
    assert verify_password("hunter22", hashed)
    assert not verify_password("hunter23", hashed)


def test_password_over_72_bytes():
    hashed = get_password_hash("hunter22")
    assert not verify_password("x" * 80, hashed)
    assert not verify_password("é" * 40, hashed)
    with pytest.raises(ValueError):
        get_password_hash("é" * 40)
    # 72 bytes exactly is still accepted
    assert verify_password("a" * 72, get_password_hash("a" * 72))


def test_token_pair_is_typed_and_distinct():
    access, refresh = create_token_pair(7)
    assert subject_id(decode_token(access, "access")) == 7
    assert subject_id(decode_token(refresh, "refresh")) == 7

    # Signed with different keys and typed
    with pytest.raises(TokenInvalidError):
        decode_token(access, "refresh")
    with pytest.raises(TokenInvalidError):
        decode_token(refresh, "access")

    # Same subject, same second, still different values
    assert create_refresh_token({"sub": "7"}) != create_refresh_token({"sub": "7"})


def test_expired_token():
    token = create_access_token({"sub": "1"}, expires_delta=timedelta(seconds=-1))
    with pytest.raises(TokenExpiredError):
        decode_token(token, "access")


def test_malformed_token():
    with pytest.raises(TokenInvalidError):
        decode_token("not-a-jwt", "access")


def test_totp_window():
    secret = mfa.generate_mfa_secret()
    totp = pyotp.TOTP(secret)
    now = time.time()

    assert mfa.verify_totp(secret, totp.now())
    assert mfa.verify_totp(secret, totp.at(now - 30))
    assert not mfa.verify_totp(secret, "abcdef")
    assert not mfa.verify_totp(None, totp.now())

    far = totp.at(now - 600)
    if far not in {totp.at(now + offset) for offset in (-30, 0, 30)}:
        assert not mfa.verify_totp(secret, far)


def test_provisioning_uri_and_qr():
    secret = mfa.generate_mfa_secret()
    uri = mfa.provisioning_uri(secret, "someone@test.com")
    assert uri.startswith("otpauth://totp/")
    assert secret in uri
    assert mfa.qr_code_data_url(uri).startswith("data:image/png;base64,")


def test_haversine_known_distance():
    # One degree of longitude on the equator
    expected = 2 * 3.141592653589793 * EARTH_RADIUS_KM / 360
    assert haversine_km(0, 0, 1, 0) == pytest.approx(expected, rel=1e-9)
    assert haversine_km(10, 20, 10, 20) == 0


@pytest.mark.parametrize("lon,lat,radius", [(0, 0, 5), (-74, 40, 25), (179.99, 10, 5), (0, 89.99, 5)])
def test_bounding_box_contains_circle(lon, lat, radius):
    min_lat, max_lat, min_lon, max_lon = bounding_box(lon, lat, radius)
    # Points on the circle, north/south/east/west
    step = radius / EARTH_RADIUS_KM * 57.29577951308232
    assert min_lat <= lat - step + 1e-9
    assert max_lat >= min(lat + step, 90) - 1e-9
    if min_lon is not None:
        assert min_lon < lon < max_lon
        assert haversine_km(lon, lat, max_lon, lat) >= radius - 1e-6


def test_upload_filename():
    name = build_filename("my photo.jpg", 42)
    millis, user_id, rest = name.split("-", 2)
    assert millis.isdigit()
    assert user_id == "42"
    assert rest == "my-photo.jpg"
    assert build_filename("../../etc/passwd.png", 1).endswith("-1-passwd.png")
