import unittest

import requests

from vaultdraw.beacon import fetch_latest_randomness
from vaultdraw.config import BeaconSettings
from vaultdraw.errors import EntropySourceError
from tests.support import DummyResponse, DummySession


class TestFetchLatestRandomness(unittest.TestCase):
    def test_parses_round_and_randomness(self):
        session = DummySession(
            DummyResponse({"round": 12345, "randomness": "b" * 64, "signature": "sig"})
        )
        beacon = fetch_latest_randomness(session=session)
        self.assertEqual(beacon.round, 12345)
        self.assertEqual(beacon.randomness, "b" * 64)
        self.assertEqual(beacon.verification_url, "https://api.drand.sh/public/12345")
        self.assertTrue(beacon.fetch_time.endswith("Z"))
        self.assertEqual(session.calls[0]["url"], "https://api.drand.sh/public/latest")

        source = beacon.to_source()
        self.assertEqual(source.provider, "drand")
        self.assertEqual(source.round, 12345)
        self.assertTrue(source.fetched_by_worker)

    def test_custom_endpoint(self):
        session = DummySession(DummyResponse({"round": 7, "randomness": "ab"}))
        settings = BeaconSettings(url="https://beacon.test/chain/xyz/public/latest", timeout=2.0)
        beacon = fetch_latest_randomness(settings, session=session)
        self.assertEqual(beacon.verification_url, "https://beacon.test/chain/xyz/public/7")
        self.assertEqual(session.calls[0]["timeout"], 2.0)

    def test_incomplete_payload(self):
        for payload in ({"round": 1}, {"randomness": "ab"}, {"round": 1, "randomness": "zz"}, ["x"]):
            session = DummySession(DummyResponse(payload))
            with self.assertRaises(EntropySourceError):
                fetch_latest_randomness(session=session)

    def test_http_error(self):
        session = DummySession(DummyResponse({"message": "down"}, status_code=500))
        with self.assertRaises(EntropySourceError) as ctx:
            fetch_latest_randomness(session=session)
        self.assertTrue(ctx.exception.retryable)

    def test_transport_error(self):
        session = DummySession(requests.ConnectionError("unreachable"))
        with self.assertRaisesRegex(EntropySourceError, "unreachable"):
            fetch_latest_randomness(session=session)


if __name__ == "__main__":
    unittest.main()
