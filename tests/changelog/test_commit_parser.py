import unittest
from pathlib import Path

from vc_changelog.changelog.commit_parser import parse_bullet_list, parse_report
from vc_changelog.changelog.report_model import CommitType


ASSETS = Path(__file__).resolve().parent.parent / "assets" / "commit_messages"


def read_asset(name: str) -> str:
    return (ASSETS / name).read_text(encoding="utf-8")


class TestParseReportAssets(unittest.TestCase):
    def test_feature_with_all_sections(self) -> None:
        report = parse_report(read_asset("1.txt"))
        self.assertIsNotNone(report)
        self.assertEqual(report.header, "Insert some stuff")
        self.assertEqual(report.commit_type, CommitType.FEATURE)
        self.assertEqual(report.context, "cmd/update")
        self.assertEqual(
            report.description,
            "This commit will insert some stuff. \nIt is intendet to test if this works or not.",
        )
        self.assertEqual(report.related_issues, ("foo", "bar"))
        self.assertEqual(report.solved_issues, ("hallo", "welt"))
        self.assertEqual(report.breaking_changes, ("bla", "blubb"))

    def test_bare_fix(self) -> None:
        report = parse_report(read_asset("2.txt"))
        self.assertIsNotNone(report)
        self.assertEqual(report.header, "Some fix")
        self.assertEqual(report.commit_type, CommitType.FIX)
        self.assertEqual(report.context, "")
        self.assertIsNone(report.description)
        self.assertEqual(report.related_issues, ())
        self.assertEqual(report.solved_issues, ())
        self.assertEqual(report.breaking_changes, ())

    def test_multiline_breaking_change(self) -> None:
        report = parse_report(read_asset("3.txt"))
        self.assertIsNotNone(report)
        self.assertEqual(report.header, "Fix something")
        self.assertEqual(
            report.breaking_changes,
            ("break something", "break some real long thing\nthat wraps arround two lines"),
        )
        self.assertIsNone(report.description)


class TestParseReport(unittest.TestCase):
    def test_documented_example(self) -> None:
        message = (
            "feat(cmd/update): Insert some stuff\n\n"
            "This commit will insert some stuff.\n\n"
            "Solves:\n - hallo\n - welt"
        )
        report = parse_report(message)
        self.assertEqual(report.context, "cmd/update")
        self.assertEqual(report.commit_type, CommitType.FEATURE)
        self.assertEqual(report.header, "Insert some stuff")
        self.assertEqual(report.description, "This commit will insert some stuff.")
        self.assertEqual(report.solved_issues, ("hallo", "welt"))

    def test_no_colon_is_rejected(self) -> None:
        self.assertIsNone(parse_report("feat add something"))
        self.assertIsNone(parse_report("Merge branch 'main'\n\nfix: not a headline"))
        self.assertIsNone(parse_report(""))

    def test_unknown_type_is_rejected(self) -> None:
        for message in ("docs: update readme", "chore(ci): bump", "features: nope", ": empty type"):
            with self.subTest(message=message):
                self.assertIsNone(parse_report(message))

    def test_unknown_type_rejected_even_with_sections(self) -> None:
        message = "refactor(core): tidy\n\nSolves:\n - #1\n\nBreaking Changes:\n - everything"
        self.assertIsNone(parse_report(message))

    def test_type_is_case_insensitive(self) -> None:
        self.assertEqual(parse_report("FEAT: a").commit_type, CommitType.FEATURE)
        self.assertEqual(parse_report("Feature: a").commit_type, CommitType.FEATURE)
        self.assertEqual(parse_report("Fix(ui): a").commit_type, CommitType.FIX)

    def test_header_keeps_inner_colons(self) -> None:
        report = parse_report("fix(api):  handle a:b:c  ")
        self.assertEqual(report.header, "handle a:b:c")
        self.assertEqual(report.context, "api")

    def test_empty_header_is_rejected(self) -> None:
        self.assertIsNone(parse_report("fix:   "))

    def test_context_without_closing_paren(self) -> None:
        report = parse_report("feat(parser: accept it")
        self.assertEqual(report.context, "parser")
        self.assertEqual(report.header, "accept it")

    def test_empty_parens_give_empty_context(self) -> None:
        self.assertEqual(parse_report("feat(): x").context, "")

    def test_labels_are_case_insensitive(self) -> None:
        message = "fix: x\n\nSOLVES:\n - 1\n\nrelated:\n - 2\n\nbreaking_changes:\n - 3"
        report = parse_report(message)
        self.assertEqual(report.solved_issues, ("1",))
        self.assertEqual(report.related_issues, ("2",))
        self.assertEqual(report.breaking_changes, ("3",))
        self.assertIsNone(report.description)

    def test_last_description_wins(self) -> None:
        report = parse_report("feat: x\n\nfirst body\n\nSolves:\n - 1\n\nsecond body")
        self.assertEqual(report.description, "second body")
        self.assertEqual(report.solved_issues, ("1",))

    def test_blank_lines_with_whitespace_split_sections(self) -> None:
        report = parse_report("feat: x\n   \n\t\nbody text\n \nRelated:\n - a")
        self.assertEqual(report.header, "x")
        self.assertEqual(report.description, "body text")
        self.assertEqual(report.related_issues, ("a",))

    def test_label_must_be_whole_first_line(self) -> None:
        report = parse_report("feat: x\n\nSolves: nothing here")
        self.assertEqual(report.description, "Solves: nothing here")
        self.assertEqual(report.solved_issues, ())


class TestParseBulletList(unittest.TestCase):
    def test_label_fragment_is_dropped(self) -> None:
        self.assertEqual(parse_bullet_list("Solves:\n - a\n - b"), ["a", "b"])

    def test_label_only(self) -> None:
        self.assertEqual(parse_bullet_list("Related:"), [])

    def test_hyphen_inside_word_is_kept(self) -> None:
        self.assertEqual(parse_bullet_list("Related:\n- re-run jobs\n- x"), ["re-run jobs", "x"])


if __name__ == "__main__":
    unittest.main()
