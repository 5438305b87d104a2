from __future__ import annotations

import json

import pytest

from solwallet.errors import (
    AppDataDirError,
    DuplicateKeyPairName,
    InvalidPassword,
    KeyPairNotFound,
    NoDefaultKeyPair,
    OtherError,
    WalletError,
)
from solwallet.wallet.keypair import KeyPair
from solwallet.wallet.store import EncryptedWallet, Wallet, clean_wallet

from conftest import OTHER_PASSWORD, PASSWORD


def _defaults(wallet: Wallet) -> list[str]:
    return [kp.name for kp in wallet if kp.is_default]


# ---------------------------------------------------------------------------
# Scenarios
# ---------------------------------------------------------------------------


def test_default_keypair_is_returned():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    assert wallet.default_keypair().name == "alice"


def test_new_default_demotes_previous_default():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    wallet.add_keypair(KeyPair.generate("bob", is_default=True))
    assert wallet.get_keypair("alice").is_default is False
    assert wallet.get_keypair("bob").is_default is True
    assert _defaults(wallet) == ["bob"]


def test_duplicate_name_is_rejected():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice"))
    with pytest.raises(DuplicateKeyPairName) as excinfo:
        wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    assert excinfo.value.name == "alice"
    assert [kp.name for kp in wallet] == ["alice"]
    assert _defaults(wallet) == []


def test_load_missing_file_gives_empty_wallet(tmp_path):
    wallet = Wallet.load(PASSWORD, tmp_path / "missing.json")
    assert len(wallet) == 0
    assert not (tmp_path / "missing.json").exists()


def test_export_then_load_round_trip(wallet_file):
    wallet = Wallet()
    bob = KeyPair.generate("bob", is_default=True)
    alice = KeyPair.generate("alice")
    wallet.add_keypair(bob)
    wallet.add_keypair(alice)
    wallet.export(PASSWORD, wallet_file)

    loaded = Wallet.load(PASSWORD, wallet_file)
    assert [kp.name for kp in loaded] == ["alice", "bob"]
    assert loaded.keypairs == [alice, bob]
    assert loaded.default_keypair() == bob


# ---------------------------------------------------------------------------
# Uniqueness
# ---------------------------------------------------------------------------


def test_duplicate_public_key_is_rejected_before_name():
    wallet = Wallet()
    alice = KeyPair.generate("alice")
    wallet.add_keypair(alice)
    clone = alice.copy()
    clone.is_default = True
    with pytest.raises(OtherError, match="already exists in the wallet with the name `alice`"):
        wallet.add_keypair(clone)

    renamed = alice.copy()
    renamed.name = "carol"
    with pytest.raises(OtherError):
        wallet.add_keypair(renamed)
    assert wallet.keypairs == [alice]


def test_uniqueness_after_many_adds():
    wallet = Wallet()
    keypairs = [KeyPair.generate(f"kp{i % 5}", is_default=i % 3 == 0) for i in range(15)]
    for kp in keypairs:
        try:
            wallet.add_keypair(kp)
        except DuplicateKeyPairName:
            pass
    names = [kp.name for kp in wallet]
    keys = [kp.public_key for kp in wallet]
    assert len(names) == len(set(names)) == 5
    assert len(keys) == len(set(keys))
    assert len(_defaults(wallet)) <= 1


# ---------------------------------------------------------------------------
# Lookup / delete / default
# ---------------------------------------------------------------------------


def test_get_keypair_not_found():
    wallet = Wallet([KeyPair.generate("alice")])
    with pytest.raises(KeyPairNotFound, match="`bob`"):
        wallet.get_keypair("bob")


def test_delete_keypair_returns_it():
    alice = KeyPair.generate("alice")
    wallet = Wallet([alice, KeyPair.generate("bob")])
    assert wallet.delete_keypair("alice") is alice
    assert "alice" not in wallet
    with pytest.raises(KeyPairNotFound):
        wallet.delete_keypair("alice")


def test_deleting_default_does_not_promote_another():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    wallet.add_keypair(KeyPair.generate("bob"))
    wallet.delete_keypair("alice")
    with pytest.raises(NoDefaultKeyPair, match="set-default"):
        wallet.default_keypair()


def test_no_default_on_empty_wallet():
    with pytest.raises(NoDefaultKeyPair):
        Wallet().default_keypair()


def test_set_default_moves_the_flag():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    wallet.add_keypair(KeyPair.generate("bob"))
    wallet.add_keypair(KeyPair.generate("carol"))
    order = [kp.name for kp in wallet]

    promoted = wallet.set_default("bob")
    assert promoted.name == "bob"
    assert _defaults(wallet) == ["bob"]
    assert [kp.name for kp in wallet] == order


def test_set_default_unknown_name_leaves_wallet_untouched():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    with pytest.raises(KeyPairNotFound):
        wallet.set_default("bob")
    assert _defaults(wallet) == ["alice"]


def test_default_invariant_over_mixed_operations():
    wallet = Wallet()
    for i in range(6):
        wallet.add_keypair(KeyPair.generate(f"kp{i}", is_default=i % 2 == 0))
        assert len(_defaults(wallet)) <= 1
    wallet.set_default("kp1")
    wallet.delete_keypair("kp3")
    wallet.set_default("kp5")
    wallet.delete_keypair("kp5")
    wallet.add_keypair(KeyPair.generate("kp6", is_default=True))
    assert _defaults(wallet) == ["kp6"]


def test_keypair_name_falls_back_to_default():
    wallet = Wallet()
    wallet.add_keypair(KeyPair.generate("alice", is_default=True))
    assert wallet.keypair_name("bob") == "bob"
    assert wallet.keypair_name(None) == "alice"
    with pytest.raises(NoDefaultKeyPair):
        Wallet().keypair_name(None)


# ---------------------------------------------------------------------------
# Persistence
# ---------------------------------------------------------------------------


def test_file_format(wallet_file):
    wallet = Wallet()
    kp = KeyPair.generate("alice", is_default=True)
    wallet.add_keypair(kp)
    wallet.export(PASSWORD, wallet_file)

    data = json.loads(wallet_file.read_text())
    assert list(data) == ["keypairs"]
    [entry] = data["keypairs"]
    assert set(entry) == {"name", "private_key", "is_default"}
    assert entry["is_default"] is True
    assert "alice" not in wallet_file.read_text()
    assert kp.private_key not in wallet_file.read_text()


def test_export_fully_rewrites_the_file(wallet_file):
    wallet = Wallet([KeyPair.generate("alice"), KeyPair.generate("bob")])
    wallet.export(PASSWORD, wallet_file)
    wallet.delete_keypair("alice")
    wallet.export(PASSWORD, wallet_file)
    assert [kp.name for kp in Wallet.load(PASSWORD, wallet_file)] == ["bob"]


def test_load_with_wrong_password_fails(wallet_file):
    Wallet([KeyPair.generate("alice")]).export(PASSWORD, wallet_file)
    with pytest.raises(InvalidPassword):
        Wallet.load(OTHER_PASSWORD, wallet_file)


@pytest.mark.parametrize(
    "wrong",
    [
        PASSWORD[:16] + OTHER_PASSWORD[16:],
        OTHER_PASSWORD[:16] + PASSWORD[16:],
        PASSWORD[:-1] + "X",
    ],
)
def test_load_with_nearly_right_password_fails(wallet_file, wrong):
    Wallet([KeyPair.generate(f"kp{i}") for i in range(20)]).export(PASSWORD, wallet_file)
    with pytest.raises(InvalidPassword):
        Wallet.load(wrong, wallet_file)


def test_one_foreign_keypair_aborts_the_whole_load(wallet_file):
    good = KeyPair.generate("alice").encrypt(PASSWORD)
    foreign = KeyPair.generate("mallory").encrypt(OTHER_PASSWORD)
    EncryptedWallet(keypairs=[good, foreign]).export(wallet_file)
    with pytest.raises(InvalidPassword):
        Wallet.load(PASSWORD, wallet_file)


@pytest.mark.parametrize("content", ["", "not json", '{"keypairs": [{"name": 1}]}', "[]"])
def test_load_corrupted_file(wallet_file, content):
    wallet_file.write_text(content)
    with pytest.raises(WalletError, match="Failed to deserialize wallet"):
        Wallet.load(PASSWORD, wallet_file)


def test_load_unreadable_path(tmp_path):
    directory = tmp_path / "dir.json"
    directory.mkdir()
    with pytest.raises(WalletError, match="Failed to open wallet file"):
        Wallet.load(PASSWORD, directory)


def test_export_to_missing_directory(tmp_path):
    with pytest.raises(AppDataDirError):
        Wallet().export(PASSWORD, tmp_path / "nope" / "wallet.json")


def test_export_rejects_bad_password_without_touching_file(wallet_file):
    Wallet([KeyPair.generate("alice")]).export(PASSWORD, wallet_file)
    before = wallet_file.read_text()
    with pytest.raises(InvalidPassword):
        Wallet([KeyPair.generate("bob")]).export("short", wallet_file)
    assert wallet_file.read_text() == before


def test_clean_wallet(wallet_file):
    Wallet().export(PASSWORD, wallet_file)
    clean_wallet(wallet_file)
    assert not wallet_file.exists()
    with pytest.raises(WalletError, match="Failed to remove wallet file"):
        clean_wallet(wallet_file)
