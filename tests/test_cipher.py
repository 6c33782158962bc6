import pytest
import torch

from pinseq import FF1, Characters, ConfigurationError, ShuffleCipher, index_to_symbols, make_cipher

NIST_KEY = bytes.fromhex("2B7E151628AED2A6ABF7158809CF4F3C")
BASE36 = Characters("0123456789abcdefghijklmnopqrstuvwxyz")


def digits(text: str) -> torch.Tensor:
    return BASE36.index(text)


@pytest.mark.parametrize("radix, tweak, plaintext, ciphertext", [
    (10, "", "0123456789", "2433477484"),
    (10, "39383736353433323130", "0123456789", "6124200773"),
    (36, "3737373770717273373737", "0123456789abcdefghi", "a9tv40mll9kdu509eum"),
])
def test_ff1_nist_samples(radix, tweak, plaintext, ciphertext):
    ff1 = FF1(radix=radix)
    out = ff1.encrypt(NIST_KEY, bytes.fromhex(tweak), digits(plaintext), radix)
    assert BASE36.read(out) == ciphertext
    back = ff1.decrypt(NIST_KEY, bytes.fromhex(tweak), out, radix)
    assert BASE36.read(back) == plaintext


def test_ff1_is_a_bijection_on_small_space():
    ff1 = FF1(radix=10)
    key = bytes(range(32))
    seen = {tuple(ff1.encrypt(key, b"", index_to_symbols(i, 10, 3), 10).tolist()) for i in range(1000)}
    assert len(seen) == 1000


def test_ff1_single_symbol():
    ff1 = FF1(radix=10)
    seen = {int(ff1.encrypt(NIST_KEY, b"", [i])[0]) for i in range(10)}
    assert seen == set(range(10))


def test_ff1_rejects_bad_input():
    with pytest.raises(ConfigurationError):
        FF1(radix=1)
    ff1 = FF1(radix=10, max_tweak_length=2)
    with pytest.raises(ConfigurationError):
        ff1.encrypt(NIST_KEY, b"", [])
    with pytest.raises(ConfigurationError):
        ff1.encrypt(NIST_KEY, b"", [1, 10])
    with pytest.raises(ConfigurationError):
        ff1.encrypt(NIST_KEY, b"", [1, 2], radix=16)
    with pytest.raises(ConfigurationError):
        ff1.encrypt(NIST_KEY, b"abc", [1, 2])


def test_shuffle_cipher_is_keyed_bijection():
    cipher = ShuffleCipher()
    key1, key2 = b"\x01" * 32, b"\x02" * 32
    out1 = [tuple(cipher.encrypt(key1, b"", index_to_symbols(i, 6, 3), 6).tolist()) for i in range(216)]
    out2 = [tuple(cipher.encrypt(key2, b"", index_to_symbols(i, 6, 3), 6).tolist()) for i in range(216)]
    assert len(set(out1)) == 216
    assert set(out1) == set(out2)
    assert out1 != out2
    for i in range(216):
        back = cipher.decrypt(key1, b"", torch.tensor(out1[i]), 6)
        assert back.tolist() == index_to_symbols(i, 6, 3).tolist()


def test_make_cipher():
    assert isinstance(make_cipher("ff1", 10), FF1)
    assert isinstance(make_cipher("shuffle", 10), ShuffleCipher)
    with pytest.raises(ConfigurationError):
        make_cipher("rot13", 10)
