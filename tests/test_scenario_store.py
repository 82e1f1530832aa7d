import json
import os
import tempfile
import unittest

from services.scenarios.scenario_models import dump_record
from services.scenarios.scenario_store import (
    InvalidScenarioError,
    InvalidScenarioIdError,
    ScenarioReadError,
    list_scenarios,
    load_scenario,
)

FIXTURES = os.path.join(os.path.dirname(__file__), "fixtures")
SCENARIOS_DIR = os.path.join(FIXTURES, "scenarios")
INVALID_DIR = os.path.join(FIXTURES, "scenarios-invalid")


def _write(dir_path: str, name: str, payload) -> None:
    with open(os.path.join(dir_path, name), "w", encoding="utf-8") as fh:
        fh.write(payload if isinstance(payload, str) else json.dumps(payload))


class LoadScenarioTests(unittest.TestCase):
    def test_load_matches_source_fields(self):
        with open(os.path.join(SCENARIOS_DIR, "alpha.json"), encoding="utf-8") as fh:
            raw = json.load(fh)

        scenario = load_scenario("alpha", data_dir=SCENARIOS_DIR)

        self.assertEqual(scenario.name, raw["name"])
        self.assertEqual(scenario.description, raw["description"])
        self.assertEqual(scenario.current.month, raw["current"]["month"])
        self.assertEqual(scenario.current.year, raw["current"]["year"])
        self.assertEqual(scenario.current.action_items[0].id, "LN-1")

    def test_unknown_period_keys_survive_round_trip(self):
        scenario = load_scenario("alpha", data_dir=SCENARIOS_DIR)

        self.assertEqual(scenario.current.extensions.get("portfolioHealthScore"), 82)
        dumped = dump_record(scenario.current)
        self.assertEqual(dumped["portfolioHealthScore"], 82)
        self.assertNotIn("extensions", dumped)
        self.assertEqual(dumped["cashFlow"]["moneyIn"], 50000)

    def test_missing_fields_are_all_listed(self):
        with self.assertRaises(InvalidScenarioError) as ctx:
            load_scenario("invalid", data_dir=INVALID_DIR)

        message = str(ctx.exception)
        for field in ("name", "current", "historical"):
            self.assertIn(field, message)
        self.assertIn("missing fields", message)

    def test_blank_name_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "blank.json", {
                "name": "  ",
                "description": "d",
                "current": {"month": "May", "year": 2025},
                "historical": [],
            })
            with self.assertRaises(InvalidScenarioError) as ctx:
                load_scenario("blank", data_dir=tmp)
        self.assertIn("non-empty name and description", str(ctx.exception))

    def test_bad_current_period_is_rejected(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "badperiod.json", {
                "name": "n",
                "description": "d",
                "current": {"month": "May", "year": "2025"},
                "historical": [],
            })
            with self.assertRaises(InvalidScenarioError) as ctx:
                load_scenario("badperiod", data_dir=tmp)
        self.assertIn("current period is invalid", str(ctx.exception))

    def test_empty_id_is_rejected(self):
        with self.assertRaises(InvalidScenarioIdError):
            load_scenario("", data_dir=SCENARIOS_DIR)
        with self.assertRaises(InvalidScenarioIdError):
            load_scenario("   ", data_dir=SCENARIOS_DIR)

    def test_ids_cannot_leave_the_data_dir(self):
        # ../scenarios/alpha.json exists relative to the invalid fixtures dir.
        absolute = os.path.join(SCENARIOS_DIR, "alpha")
        for bad in ("../scenarios/alpha", "..", "sub/alpha", "..\\scenarios\\alpha", absolute):
            with self.subTest(scenario_id=bad):
                with self.assertRaises(InvalidScenarioIdError):
                    load_scenario(bad, data_dir=INVALID_DIR)

    def test_missing_file_raises_read_error(self):
        with self.assertRaises(ScenarioReadError) as ctx:
            load_scenario("does-not-exist", data_dir=SCENARIOS_DIR)
        self.assertIn('Unable to read scenario "does-not-exist"', str(ctx.exception))

    def test_malformed_json_propagates_parse_error(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "broken.json", "{not json")
            with self.assertRaises(json.JSONDecodeError):
                load_scenario("broken", data_dir=tmp)

    def test_reads_are_not_cached(self):
        with tempfile.TemporaryDirectory() as tmp:
            doc = {
                "name": "First",
                "description": "d",
                "current": {"month": "May", "year": 2025},
                "historical": [],
            }
            _write(tmp, "live.json", doc)
            self.assertEqual(load_scenario("live", data_dir=tmp).name, "First")

            doc["name"] = "Second"
            _write(tmp, "live.json", doc)
            self.assertEqual(load_scenario("live", data_dir=tmp).name, "Second")

    def test_env_data_dir_is_used_by_default(self):
        previous = os.environ.get("SCENARIO_DATA_DIR")
        os.environ["SCENARIO_DATA_DIR"] = SCENARIOS_DIR
        try:
            self.assertEqual(load_scenario("beta").name, "Beta Scenario")
        finally:
            if previous is None:
                os.environ.pop("SCENARIO_DATA_DIR", None)
            else:
                os.environ["SCENARIO_DATA_DIR"] = previous


class ListScenariosTests(unittest.TestCase):
    def test_reserved_messages_file_is_skipped(self):
        summaries = list_scenarios(data_dir=SCENARIOS_DIR)

        self.assertEqual(len(summaries), 2)
        self.assertEqual(sorted(s.id for s in summaries), ["alpha", "beta"])

    def test_active_flag_marks_only_the_active_id(self):
        summaries = list_scenarios(data_dir=SCENARIOS_DIR, active_scenario_id="beta")

        flags = {s.id: s.active for s in summaries}
        self.assertEqual(flags, {"alpha": False, "beta": True})

    def test_sentiment_defaults_to_neutral(self):
        summaries = {s.id: s for s in list_scenarios(data_dir=SCENARIOS_DIR)}

        self.assertEqual(summaries["alpha"].sentiment, "positive")
        self.assertEqual(summaries["beta"].sentiment, "neutral")
        self.assertEqual(summaries["beta"].name, "Beta Scenario")
        self.assertEqual(summaries["beta"].description, "Beta description")

    def test_one_bad_file_fails_the_listing(self):
        with self.assertRaises(InvalidScenarioError):
            list_scenarios(data_dir=INVALID_DIR)

    def test_empty_directory_lists_nothing(self):
        with tempfile.TemporaryDirectory() as tmp:
            _write(tmp, "messages.json", "[]")
            _write(tmp, "notes.txt", "ignored")
            self.assertEqual(list_scenarios(data_dir=tmp), [])


if __name__ == "__main__":
    unittest.main()
