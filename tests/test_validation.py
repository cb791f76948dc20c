import json
import unittest

from vaultdraw.config import DrawConfig
from vaultdraw.errors import DrawInputError
from vaultdraw.models import Competition, Location, Quiz
from vaultdraw.validation import parse_draw_request

HEX = "a" * 64


class ParseDrawRequestTests(unittest.TestCase):
    def assertRejected(self, body, pattern: str, config=None) -> None:
        with self.assertRaisesRegex(DrawInputError, pattern):
            parse_draw_request(body, config)

    def test_minimal_request(self):
        request = parse_draw_request({"randomness": HEX, "entries": [{"entryCode": "A"}]})
        self.assertEqual(request.randomness, HEX)
        self.assertFalse(request.auto_fetch)
        self.assertEqual([e.entry_code for e in request.entries], ["A"])
        self.assertIsNone(request.competition)
        self.assertIsNone(request.draw_round)

    def test_body_must_be_object(self):
        self.assertRejected([1, 2], "JSON object")

    def test_missing_randomness(self):
        self.assertRejected({"entries": [{"entryCode": "A"}]}, "randomness")

    def test_non_hex_randomness(self):
        self.assertRejected({"randomness": "nothex", "entries": [{"entryCode": "A"}]}, "hexadecimal")

    def test_randomness_too_long(self):
        config = DrawConfig(max_randomness_length=8)
        self.assertRejected(
            {"randomness": "a" * 9, "entries": [{"entryCode": "A"}]}, "between 1 and 8", config
        )

    def test_both_entropy_sources_rejected(self):
        self.assertRejected(
            {
                "randomness": HEX,
                "randomnessSource": {"autoFetch": True, "provider": "drand"},
                "entries": [{"entryCode": "A"}],
            },
            "not both",
        )

    def test_auto_fetch_requires_drand(self):
        self.assertRejected(
            {
                "randomnessSource": {"autoFetch": True, "provider": "random.org"},
                "entries": [{"entryCode": "A"}],
            },
            "drand",
        )

    def test_auto_fetch_request(self):
        request = parse_draw_request(
            {
                "randomnessSource": {"autoFetch": True, "provider": "drand"},
                "entries": [{"entryCode": "A"}],
            }
        )
        self.assertTrue(request.auto_fetch)
        self.assertIsNone(request.randomness)
        self.assertEqual(request.randomness_source.provider, "drand")

    def test_empty_entries(self):
        self.assertRejected({"randomness": "deadbeef", "entries": []}, "entries")

    def test_entries_must_be_array(self):
        self.assertRejected({"randomness": HEX, "entries": {"entryCode": "A"}}, "array")

    def test_too_many_entries(self):
        config = DrawConfig(max_entries=2)
        entries = [{"entryCode": c} for c in "ABC"]
        self.assertRejected({"randomness": HEX, "entries": entries}, "Maximum 2", config)

    def test_duplicate_entry_codes_after_trimming(self):
        self.assertRejected(
            {"randomness": HEX, "entries": [{"entryCode": "A"}, {"entryCode": " A "}]},
            "(?i)duplicate",
        )

    def test_entry_codes_are_case_sensitive(self):
        request = parse_draw_request(
            {"randomness": HEX, "entries": [{"entryCode": "a"}, {"entryCode": "A"}]}
        )
        self.assertEqual(len(request.entries), 2)

    def test_entry_code_bounds(self):
        self.assertRejected({"randomness": HEX, "entries": [{"entryCode": "   "}]}, "between 1 and 256")
        self.assertRejected({"randomness": HEX, "entries": [{"entryCode": "x" * 257}]}, "between 1 and 256")
        self.assertRejected({"randomness": HEX, "entries": [{"code": "A"}]}, "entryCode")
        self.assertRejected({"randomness": HEX, "entries": ["A"]}, "must be an object")

    def test_optional_blocks_are_parsed(self):
        request = parse_draw_request(
            {
                "randomness": HEX,
                "entries": [
                    {
                        "entryCode": "VP-001",
                        "gamertag": "TestPlayer",
                        "email": "test@example.com",
                        "location": {"country": "GB", "region": "Hampshire"},
                        "quiz": {"question": "Q", "answerGiven": "A", "answerCorrect": True},
                    }
                ],
            }
        )
        entry = request.entries[0]
        self.assertEqual(entry.location, Location(country="GB", region="Hampshire"))
        self.assertEqual(entry.quiz, Quiz(question="Q", answer_given="A", answer_correct=True))

    def test_malformed_optional_blocks(self):
        base = {"randomness": HEX}
        self.assertRejected({**base, "entries": [{"entryCode": "A", "location": "GB"}]}, "location")
        self.assertRejected(
            {**base, "entries": [{"entryCode": "A", "quiz": {"answerCorrect": "no"}}]},
            "answerCorrect",
        )
        self.assertRejected({**base, "entries": [{"entryCode": "A", "gamertag": 7}]}, "gamertag")

    def test_draw_round(self):
        request = parse_draw_request({"randomness": HEX, "entries": [{"entryCode": "A"}], "drawRound": 42})
        self.assertEqual(request.draw_round, 42)
        self.assertRejected(
            {"randomness": HEX, "entries": [{"entryCode": "A"}], "drawRound": "r" * 65}, "drawRound"
        )
        self.assertRejected(
            {"randomness": HEX, "entries": [{"entryCode": "A"}], "drawRound": True}, "drawRound"
        )

    def test_non_finite_numbers_rejected(self):
        base = {"randomness": HEX, "entries": [{"entryCode": "A"}]}
        for value in (float("inf"), float("-inf"), float("nan")):
            self.assertRejected({**base, "drawRound": value}, "drawRound")
            self.assertRejected(
                {**base, "competition": {"id": value, "name": "X"}}, "competition.id"
            )
            self.assertRejected(
                {**base, "randomnessSource": {"provider": "manual", "round": value}},
                "randomnessSource.round",
            )

        # 1e400 is valid JSON but decodes to inf
        body = json.loads('{"randomness": "ab", "entries": [{"entryCode": "A"}], "drawRound": 1e400}')
        self.assertRejected(body, "drawRound")

    def test_large_integer_round_is_accepted(self):
        request = parse_draw_request(
            {"randomness": HEX, "entries": [{"entryCode": "A"}], "drawRound": 10**30}
        )
        self.assertEqual(request.draw_round, 10**30)

    def test_competition(self):
        request = parse_draw_request(
            {
                "randomness": HEX,
                "entries": [{"entryCode": "A"}],
                "competition": {"id": "c-1", "name": " Summer Prize ", "mode": "live"},
            }
        )
        self.assertEqual(request.competition, Competition(id="c-1", name="Summer Prize", mode="live"))

        request = parse_draw_request(
            {"randomness": HEX, "entries": [{"entryCode": "A"}], "competition": {"name": "X"}}
        )
        self.assertEqual(request.competition.mode, "test")

        self.assertRejected(
            {"randomness": HEX, "entries": [{"entryCode": "A"}], "competition": {"name": "X", "mode": "prod"}},
            "mode",
        )
        self.assertRejected(
            {"randomness": HEX, "entries": [{"entryCode": "A"}], "competition": {"id": 1}},
            "competition.name",
        )


if __name__ == "__main__":
    unittest.main()
