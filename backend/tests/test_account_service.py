import asyncio

import pytest

from offerhub.exceptions import DuplicateAccountError, UnauthorizedError, ValidationError
from offerhub.services import credentials
from offerhub.services.account_service import AccountService


@pytest.fixture
def account_service(record_store, asset_store):
    return AccountService(record_store, asset_store, avatar_folder_root="vinted/avatar")


@pytest.mark.asyncio
async def test_signup_creates_account_with_token(account_service, record_store):
    account = await account_service.signup("bob", "Bob@Example.com", "hunter22", newsletter=True)

    stored = record_store.accounts[account.id]
    assert stored.email == "bob@example.com"
    assert stored.newsletter is True
    assert len(stored.token) == credentials.TOKEN_LENGTH
    assert stored.hash != "hunter22"
    assert credentials.verify("hunter22", stored.salt, stored.hash)


@pytest.mark.asyncio
async def test_signup_places_avatar_in_account_folder(account_service, asset_store, upload):
    account = await account_service.signup("bob", "bob@example.com", "pw", avatar=upload("me.png"))

    assert account.avatar.folder == f"vinted/avatar/{account.id}"
    assert account.avatar.public_id in asset_store.objects


@pytest.mark.asyncio
async def test_signup_duplicate_email(account_service, asset_store, owner, upload):
    with pytest.raises(DuplicateAccountError):
        await account_service.signup("alice2", "ALICE@example.com", "pw", avatar=upload("me.png"))

    assert asset_store.calls == []


@pytest.mark.asyncio
async def test_concurrent_signups_for_one_email(db_store, asset_store, upload):
    class YieldingAssetStore(type(asset_store)):
        async def upload(self, file):
            # Hand control back so the other signup runs its duplicate check.
            await asyncio.sleep(0)
            return await super().upload(file)

    store = YieldingAssetStore()
    service = AccountService(db_store, store, avatar_folder_root="vinted/avatar")

    results = await asyncio.gather(
        service.signup("dup1", "dup@example.com", "pw", avatar=upload("one.png")),
        service.signup("dup2", "dup@example.com", "pw", avatar=upload("two.png")),
        return_exceptions=True,
    )

    created = [r for r in results if not isinstance(r, Exception)]
    failed = [r for r in results if isinstance(r, Exception)]
    assert len(created) == 1
    assert len(failed) == 1 and isinstance(failed[0], DuplicateAccountError)
    assert db_store.find_account_by_email("dup@example.com").id == created[0].id
    # Only the winner's avatar is kept.
    assert list(store.objects) == [created[0].avatar.public_id]


@pytest.mark.asyncio
async def test_signup_missing_parameters(account_service, record_store):
    with pytest.raises(ValidationError):
        await account_service.signup("bob", None, "pw")

    assert record_store.find_account_by_email("bob@example.com") is None


def test_login_returns_stored_token(account_service, owner):
    response = account_service.login("Alice@example.com", "secret-password")

    assert response.token == "owner-token"
    assert response.account.username == "alice"


@pytest.mark.parametrize("email,password", [
    ("alice@example.com", "wrong"),
    ("nobody@example.com", "secret-password"),
])
def test_login_failures_are_indistinguishable(account_service, owner, email, password):
    with pytest.raises(UnauthorizedError) as excinfo:
        account_service.login(email, password)

    assert excinfo.value.message == "Invalid email or password."


def test_login_rejects_non_string_input(account_service):
    with pytest.raises(ValidationError):
        account_service.login(None, "pw")


def test_authenticate(account_service, owner):
    assert account_service.authenticate("owner-token").id == owner.id

    for token in (None, "", "unknown-token"):
        with pytest.raises(UnauthorizedError):
            account_service.authenticate(token)
