import unittest

from keytoken.services.token_issuer import TokenIssuer

from tests.support import START_TIME, ManualClock, make_signer


class TestTokenIssuer(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.clock = ManualClock()
        cls.signer = make_signer(cls.clock)
        cls.key_pair = cls.signer.generate_key_pair()

    def setUp(self):
        self.issuer = TokenIssuer(
            self.signer, clock=self.clock, access_ttl_seconds=900, refresh_ttl_seconds=86400
        )

    def test_pair_carries_typed_claims_and_ttls(self):
        pair = self.issuer.create_token_pair({"sub": "owner-1", "email": "a@x.com"}, self.key_pair)

        access = self.signer.verify(pair.access_token, self.key_pair.public_key)
        refresh = self.signer.verify(pair.refresh_token, self.key_pair.public_key)

        self.assertEqual(access["type"], "access")
        self.assertEqual(refresh["type"], "refresh")
        self.assertEqual(access["sub"], "owner-1")
        self.assertEqual(refresh["email"], "a@x.com")
        self.assertEqual(access["exp"], START_TIME + 900)
        self.assertEqual(refresh["exp"], START_TIME + 86400)
        self.assertEqual(pair.access_expires_at, START_TIME + 900)
        self.assertEqual(pair.refresh_expires_at, START_TIME + 86400)
        self.assertNotEqual(access["jti"], refresh["jti"])

    def test_pairs_minted_in_the_same_second_differ(self):
        claims = {"sub": "owner-1", "email": "a@x.com"}
        first = self.issuer.create_token_pair(claims, self.key_pair)
        second = self.issuer.create_token_pair(claims, self.key_pair)
        self.assertNotEqual(first.refresh_token, second.refresh_token)
        self.assertNotEqual(first.access_token, second.access_token)

    def test_subject_is_stringified(self):
        pair = self.issuer.create_token_pair({"sub": 42, "email": "a@x.com"}, self.key_pair)
        self.assertEqual(self.signer.verify(pair.access_token, self.key_pair.public_key)["sub"], "42")

    def test_zero_ttl_is_not_replaced_by_the_default(self):
        issuer = TokenIssuer(self.signer, clock=self.clock, access_ttl_seconds=0, refresh_ttl_seconds=0)
        pair = issuer.create_token_pair({"sub": "owner-1", "email": "a@x.com"}, self.key_pair)
        self.assertEqual(pair.access_expires_at, START_TIME)
        self.assertEqual(pair.refresh_expires_at, START_TIME)


if __name__ == "__main__":
    unittest.main()
