import os
import sys
import tempfile
import unittest
from unittest import mock

import report_builder
from config import GlobalConfig
from errors import ReportWriteError
from models import AuthorAlias, CommitRecord


def commit(date, repo, branch, message, author="Alice", commit_hash=None, ins=0, dels=0):
    return CommitRecord(
        date=date,
        hash=commit_hash or f"{repo}-{date}-{message}",
        author=author,
        message=message,
        repo_name=repo,
        branch=branch,
        insertions=ins,
        deletions=dels,
    )


class TestFormatDateRange(unittest.TestCase):

    def test_condensed_range(self):
        self.assertEqual(report_builder.format_date_range("2024-01-05", "2024-01-09"), "2024-01-05~09")
        self.assertEqual(report_builder.format_date_range("2024-01-05", "2024-03-09"), "2024-01-05~03-09")
        self.assertEqual(
            report_builder.format_date_range("2023-12-31", "2024-01-02"), "2023-12-31~2024-01-02"
        )


class TestReportTree(unittest.TestCase):

    def test_same_branch_groups_messages_in_order(self):
        commits = [
            commit("2024-01-05", "api", "main", "feat: first"),
            commit("2024-01-05", "api", "main", "fix: second"),
        ]
        tree = report_builder.build_report_tree(commits)
        self.assertEqual(tree, {"2024-01-05": {"api": {"main": ["feat: first", "fix: second"]}}})

        text = report_builder.generate_text_report(commits, "2024-01-05", "2024-01-05", "Alice")
        self.assertEqual(text.count("🌿 分支: main"), 1)
        self.assertIn("      1. feat: first\n      2. fix: second\n", text)

    def test_ordering(self):
        commits = [
            commit("2024-01-06", "web", "dev", "later"),
            commit("2024-01-05", "web", "main", "b"),
            commit("2024-01-05", "api", "main", "a"),
            commit("2024-01-05", "api", "dev", "c"),
        ]
        tree = report_builder.build_report_tree(commits)
        self.assertEqual(list(tree), ["2024-01-05", "2024-01-06"])
        self.assertEqual(list(tree["2024-01-05"]), ["api", "web"])
        self.assertEqual(list(tree["2024-01-05"]["api"]), ["dev", "main"])

    def test_text_layout(self):
        commits = [
            commit("2024-01-05", "api", "main", "feat: login\nadd form\nadd api"),
            commit("2024-01-05", "web", "dev", "fix: css"),
        ]
        text = report_builder.generate_text_report(commits, "2024-01-05", "2024-01-09")
        expected = (
            "汇总报告 (所有作者)\n"
            "时间范围: 2024-01-05 至 2024-01-09\n"
            "----------------------------------------\n"
            "\n"
            "【2024-01-05】\n"
            "  📂 项目: api\n"
            "    🌿 分支: main\n"
            "      1. feat: login\n"
            "         add form\n"
            "         add api\n"
            "\n"
            "\n"
            "  📂 项目: web\n"
            "    🌿 分支: dev\n"
            "      1. fix: css\n"
            "\n"
            "\n"
        )
        self.assertEqual(text, expected)

    def test_only_newline_splits_message_lines(self):
        commits = [commit("2024-01-05", "api", "main", "feat: a\x0cb c\nsecond")]
        text = report_builder.generate_text_report(commits, "2024-01-05", "2024-01-05")
        self.assertIn("      1. feat: a\x0cb c\n         second\n", text)

    def test_author_header(self):
        text = report_builder.generate_text_report([], "2024-01-05", "2024-01-09", "Bob")
        self.assertTrue(text.startswith("作者: Bob\n时间范围: 2024-01-05 至 2024-01-09\n"))


class TestAuthors(unittest.TestCase):

    def test_resolve_author_name(self):
        aliases = [AuthorAlias("alice.w", "Alice"), AuthorAlias("BOB", "Bob")]
        self.assertEqual(report_builder.resolve_author_name(" alice.w ", aliases), "Alice")
        self.assertEqual(report_builder.resolve_author_name("bob", aliases), "Bob")
        self.assertEqual(report_builder.resolve_author_name("carol", aliases), "carol")
        self.assertEqual(report_builder.resolve_author_name("carol", None), "carol")

    def test_group_by_author_with_aliases(self):
        commits = [
            commit("2024-01-05", "api", "main", "a", author="alice.w"),
            commit("2024-01-05", "api", "main", "b", author="Alice"),
            commit("2024-01-05", "api", "main", "c", author="Bob"),
        ]
        groups = report_builder.group_commits_by_author(commits, [AuthorAlias("alice.w", "Alice")])
        self.assertEqual({k: len(v) for k, v in groups.items()}, {"Alice": 2, "Bob": 1})

    def test_repo_label(self):
        self.assertEqual(report_builder.repo_label([commit("2024-01-05", "api", "main", "a")]), "api")
        self.assertEqual(
            report_builder.repo_label(
                [commit("2024-01-05", "api", "main", "a"), commit("2024-01-05", "web", "main", "b")]
            ),
            "AllProjects",
        )
        self.assertEqual(report_builder.repo_label([]), "Unknown")


class TestWriteReports(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.commits = [
            commit("2024-01-05", "api", "main", "feat: a", author="Alice"),
            commit("2024-01-06", "web", "dev", "fix: b", author="Alice"),
            commit("2024-01-06", "api", "main", "docs: c", author="Bob"),
        ]

    def test_files_and_names(self):
        output_dir = report_builder.write_reports(
            self.commits, self.tmp.name, "2024-01-05", "2024-01-09"
        )
        self.assertEqual(output_dir, os.path.join(self.tmp.name, "2024-01-05~2024-01-09"))
        self.assertEqual(
            sorted(os.listdir(output_dir)),
            [
                "Alice-2024-01-05~09-AllProjects.txt",
                "Bob-2024-01-05~09-api.txt",
                "TOTAL-2024-01-05~09-AllProjects.txt",
            ],
        )
        with open(os.path.join(output_dir, "Bob-2024-01-05~09-api.txt"), encoding="utf-8") as f:
            content = f.read()
        self.assertTrue(content.startswith("作者: Bob\n"))
        self.assertIn("docs: c", content)
        self.assertNotIn("feat: a", content)

    def test_rewrite_is_byte_identical(self):
        output_dir = report_builder.write_reports(
            self.commits, self.tmp.name, "2024-01-05", "2024-01-09"
        )
        path = os.path.join(output_dir, "TOTAL-2024-01-05~09-AllProjects.txt")
        with open(path, "rb") as f:
            first = f.read()
        report_builder.write_reports(self.commits, self.tmp.name, "2024-01-05", "2024-01-09")
        with open(path, "rb") as f:
            second = f.read()
        self.assertEqual(first, second)

    def test_content_filter_applied(self):
        output_dir = report_builder.write_reports(
            self.commits,
            self.tmp.name,
            "2024-01-05",
            "2024-01-09",
            content_filter=lambda content, author: content + f"# {author}\n",
        )
        with open(os.path.join(output_dir, "TOTAL-2024-01-05~09-AllProjects.txt"), encoding="utf-8") as f:
            self.assertTrue(f.read().endswith("# TOTAL\n"))

    def test_empty_commits_writes_total_only(self):
        output_dir = report_builder.write_reports([], self.tmp.name, "2024-01-05", "2024-01-05")
        self.assertEqual(os.listdir(output_dir), ["TOTAL-2024-01-05~05-Unknown.txt"])

    def test_directory_failure_raises(self):
        blocker = os.path.join(self.tmp.name, "blocker")
        with open(blocker, "w") as f:
            f.write("")
        with self.assertRaises(ReportWriteError) as cm:
            report_builder.write_reports(self.commits, blocker, "2024-01-05", "2024-01-09")
        self.assertIn("blocker", cm.exception.path)

    def test_file_write_failure_raises(self):
        with mock.patch("builtins.open", side_effect=PermissionError(13, "Permission denied")):
            with self.assertRaises(ReportWriteError):
                report_builder.write_reports(self.commits, self.tmp.name, "2024-01-05", "2024-01-09")


class TestOverview(unittest.TestCase):

    def test_summarize_commits(self):
        commits = [
            commit("2024-01-06", "api", "main", "feat(auth): login", author="alice.w", ins=10, dels=2),
            commit("2024-01-05", "api", "main", "fix: typo", author="Alice", ins=1, dels=1),
            commit("2024-01-05", "web", "main", "update readme", author="Bob"),
        ]
        stats = report_builder.summarize_commits(commits, [AuthorAlias("alice.w", "Alice")])
        self.assertEqual(stats["total_commits"], 3)
        self.assertEqual(stats["insertions"], 11)
        self.assertEqual(stats["deletions"], 3)
        self.assertEqual(dict(stats["types"]), {"feat": 1, "fix": 1, "other": 1})
        self.assertEqual(stats["daily"], [("2024-01-05", 2), ("2024-01-06", 1)])
        self.assertEqual(stats["top_authors"][0], ("Alice", 2))
        self.assertEqual(stats["projects"], [("api", 2), ("web", 1)])

    def test_html_overview_renders_and_escapes(self):
        commits = [commit("2024-01-05", "api", "main", "feat: a", author="<script>")]
        stats = report_builder.summarize_commits(commits)
        html = report_builder.generate_html_overview(stats, "2024-01-05", "2024-01-09")
        self.assertIn("2024-01-05", html)
        self.assertIn("&lt;script&gt;", html)
        self.assertNotIn("<td><script>", html)

    def test_type_comes_from_first_line(self):
        commits = [commit("2024-01-05", "api", "main", "update readme\n\nfix: wording")]
        stats = report_builder.summarize_commits(commits)
        self.assertEqual(dict(stats["types"]), {"other": 1})


@unittest.skipIf(sys.version_info < (3, 11), "需要 tomllib")
class TestPackaging(unittest.TestCase):

    def test_template_and_plugins_are_installed(self):
        import tomllib

        base = os.path.dirname(os.path.abspath(__file__))
        with open(os.path.join(base, "pyproject.toml"), "rb") as f:
            setuptools_conf = tomllib.load(f)["tool"]["setuptools"]

        self.assertIn("templates", setuptools_conf["packages"])
        self.assertIn("plugins", setuptools_conf["packages"])
        self.assertIn("*.html.j2", setuptools_conf["package-data"]["templates"])
        self.assertTrue(
            os.path.exists(os.path.join(GlobalConfig.TEMPLATES_DIR, GlobalConfig.OVERVIEW_TEMPLATE))
        )


if __name__ == "__main__":
    unittest.main()
