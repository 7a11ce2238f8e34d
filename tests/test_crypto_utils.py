import base64

import pytest

from domain.errors import DecryptionFailedError
from utils.crypto_utils import IV_LEN, SALT_LEN, TAG_LEN, decrypt_data, encrypt_data


def test_round_trip():
    text = '{"wallets": [], "note": "zakat ✓"}'
    assert decrypt_data(encrypt_data(text, "0986"), "0986") == text


def test_empty_plaintext_round_trip():
    blob = encrypt_data("", "pin")
    assert len(base64.b64decode(blob)) == SALT_LEN + IV_LEN + TAG_LEN
    assert decrypt_data(blob, "pin") == ""


def test_encryption_is_not_deterministic():
    first = encrypt_data("same", "pw")
    second = encrypt_data("same", "pw")
    assert first != second
    raw_first = base64.b64decode(first)
    raw_second = base64.b64decode(second)
    assert raw_first[:SALT_LEN] != raw_second[:SALT_LEN]
    assert raw_first[SALT_LEN:SALT_LEN + IV_LEN] != raw_second[SALT_LEN:SALT_LEN + IV_LEN]


def test_wrong_password():
    blob = encrypt_data("secret", "right")
    with pytest.raises(DecryptionFailedError):
        decrypt_data(blob, "wrong")


def test_tampered_ciphertext():
    raw = bytearray(base64.b64decode(encrypt_data("secret payload", "pw")))
    raw[-1] ^= 0x01
    with pytest.raises(DecryptionFailedError):
        decrypt_data(base64.b64encode(bytes(raw)).decode("ascii"), "pw")


@pytest.mark.parametrize(
    "blob",
    [
        "",
        "not base64 at all!!",
        base64.b64encode(b"short").decode("ascii"),
        base64.b64encode(b"\x00" * (SALT_LEN + IV_LEN + TAG_LEN)).decode("ascii"),
        None,
        12345,
    ],
)
def test_garbage_input_fails_uniformly(blob):
    with pytest.raises(DecryptionFailedError) as excinfo:
        decrypt_data(blob, "pw")
    assert str(excinfo.value) == "Decryption failed: wrong password or corrupted backup"


def test_failure_does_not_chain_cause():
    with pytest.raises(DecryptionFailedError) as excinfo:
        decrypt_data(encrypt_data("x", "a"), "b")
    assert excinfo.value.__cause__ is None
    assert excinfo.value.__suppress_context__ is True
