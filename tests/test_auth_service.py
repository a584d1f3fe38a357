import re
import unittest

from keytoken.exceptions import DuplicateAccount, InvalidCredentials, InvalidToken, ReuseDetected
from keytoken.security import BcryptPasswordHasher
from keytoken.services.auth_service import AuthService
from keytoken.stores.sql_store import SqlAccountStore, SqlApiKeyStore, SqlKeyTokenStore

from tests.support import TEST_BCRYPT_ROUNDS, ManualClock, make_memory_service, make_signer, make_sqlite_session_factory


class TestAuthService(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.clock = ManualClock()
        self.service, self.accounts, self.key_tokens, self.api_keys = make_memory_service(self.clock)

    async def test_sign_up_returns_principal_tokens_and_api_key(self):
        result = await self.service.sign_up("Acme", "a@x.com", "secret")

        self.assertEqual(set(result["user"]), {"id", "name", "email"})
        self.assertEqual(result["user"]["name"], "Acme")
        self.assertEqual(result["user"]["email"], "a@x.com")
        self.assertTrue(result["tokens"].access_token)
        self.assertTrue(result["tokens"].refresh_token)
        self.assertRegex(result["api_key"]["key"], re.compile(r"^[0-9a-f]{128}$"))
        self.assertEqual(result["api_key"]["permissions"], ["0000"])
        self.assertIsNotNone(await self.api_keys.find_by_key(result["api_key"]["key"]))

        account = await self.accounts.get_by_email("a@x.com")
        self.assertNotEqual(account["hashed_password"], "secret")
        self.assertEqual(account["roles"], ["SHOP"])
        record = await self.key_tokens.find_by_id(result["session_id"])
        self.assertEqual(record.owner_id, account["id"])
        self.assertEqual(record.refresh_token, result["tokens"].refresh_token)

    async def test_sign_up_twice_is_duplicate(self):
        await self.service.sign_up("Acme", "a@x.com", "secret")
        with self.assertRaises(DuplicateAccount) as ctx:
            await self.service.sign_up("Other", "a@x.com", "secret2")
        self.assertEqual(ctx.exception.status_code, 409)

    async def test_wrong_password_and_unknown_email_look_the_same(self):
        signed_up = await self.service.sign_up("Acme", "a@x.com", "secret")

        with self.assertRaises(InvalidCredentials) as wrong_password:
            await self.service.sign_in("a@x.com", "wrong")
        with self.assertRaises(InvalidCredentials) as unknown_email:
            await self.service.sign_in("nobody@x.com", "secret")

        self.assertEqual(wrong_password.exception.message, unknown_email.exception.message)
        self.assertEqual(wrong_password.exception.status_code, 401)
        sessions = await self.key_tokens.find_by_owner(signed_up["user"]["id"])
        self.assertEqual([record.id for record in sessions], [signed_up["session_id"]])

    async def test_each_sign_in_opens_a_new_session(self):
        signed_up = await self.service.sign_up("Acme", "a@x.com", "secret")
        first = await self.service.sign_in("a@x.com", "secret")
        second = await self.service.sign_in("A@X.com", "secret")

        refresh_tokens = {
            signed_up["tokens"].refresh_token,
            first["tokens"].refresh_token,
            second["tokens"].refresh_token,
        }
        self.assertEqual(len(refresh_tokens), 3)
        self.assertEqual(len(await self.key_tokens.find_by_owner(signed_up["user"]["id"])), 3)
        self.assertNotIn("api_key", first)

    async def test_refresh_scenario(self):
        await self.service.sign_up("Acme", "a@x.com", "secret")
        t1 = (await self.service.sign_in("a@x.com", "secret"))["tokens"]

        t2 = (await self.service.refresh_token(t1.refresh_token))["tokens"]
        self.assertNotEqual(t2.refresh_token, t1.refresh_token)

        with self.assertRaises(ReuseDetected) as ctx:
            await self.service.refresh_token(t1.refresh_token)
        self.assertEqual(ctx.exception.status_code, 403)

        with self.assertRaises(InvalidToken):
            await self.service.refresh_token(t2.refresh_token)

    async def test_logout_is_idempotent(self):
        signed_up = await self.service.sign_up("Acme", "a@x.com", "secret")

        await self.service.logout(signed_up["session_id"])
        await self.service.logout(signed_up["session_id"])
        await self.service.logout("never-existed")

        self.assertIsNone(await self.key_tokens.find_by_id(signed_up["session_id"]))
        with self.assertRaises(InvalidToken):
            await self.service.refresh_token(signed_up["tokens"].refresh_token)

    async def test_authenticate_access_token(self):
        signed_up = await self.service.sign_up("Acme", "a@x.com", "secret")
        other = await self.service.sign_in("a@x.com", "secret")

        session = await self.service.authenticate(signed_up["session_id"], signed_up["tokens"].access_token)
        self.assertEqual(session["user_id"], signed_up["user"]["id"])
        self.assertEqual(session["email"], "a@x.com")

        with self.assertRaises(InvalidToken):
            await self.service.authenticate(other["session_id"], signed_up["tokens"].access_token)
        with self.assertRaises(InvalidToken):
            await self.service.authenticate(signed_up["session_id"], signed_up["tokens"].refresh_token)
        with self.assertRaises(InvalidToken):
            await self.service.authenticate("missing", signed_up["tokens"].access_token)

    async def test_access_token_expires_before_refresh_token(self):
        signed_up = await self.service.sign_up("Acme", "a@x.com", "secret")
        self.clock.advance(15 * 60)

        with self.assertRaises(InvalidToken):
            await self.service.authenticate(signed_up["session_id"], signed_up["tokens"].access_token)
        refreshed = await self.service.refresh_token(signed_up["tokens"].refresh_token)
        await self.service.authenticate(signed_up["session_id"], refreshed["tokens"].access_token)


class TestAuthServiceWithSqlStores(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        session_factory = make_sqlite_session_factory()
        self.clock = ManualClock()
        self.key_tokens = SqlKeyTokenStore(session_factory)
        self.service = AuthService(
            account_store=SqlAccountStore(session_factory),
            key_token_store=self.key_tokens,
            api_key_store=SqlApiKeyStore(session_factory),
            password_hasher=BcryptPasswordHasher(rounds=TEST_BCRYPT_ROUNDS),
            signer=make_signer(self.clock),
            clock=self.clock,
        )

    async def test_full_lifecycle(self):
        signed_up = await self.service.sign_up("Acme", "a@x.com", "secret")
        self.assertEqual(len(signed_up["api_key"]["key"]), 128)

        t1 = (await self.service.sign_in("a@x.com", "secret"))["tokens"]
        t2 = (await self.service.refresh_token(t1.refresh_token))["tokens"]

        with self.assertRaises(ReuseDetected):
            await self.service.refresh_token(t1.refresh_token)
        self.assertEqual(await self.key_tokens.find_by_owner(signed_up["user"]["id"]), [])
        with self.assertRaises(InvalidToken):
            await self.service.refresh_token(t2.refresh_token)

    async def test_duplicate_sign_up(self):
        await self.service.sign_up("Acme", "a@x.com", "secret")
        with self.assertRaises(DuplicateAccount):
            await self.service.sign_up("Acme", "A@x.com", "secret")


if __name__ == "__main__":
    unittest.main()
