import os
import tempfile
import unittest
from unittest import mock

import config_manager
from config import GlobalConfig
from errors import GitFetchError
from models import RepoGroup, RepoItem


class TestRepoGroups(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.data_dir = os.path.join(self.tmp.name, "data")
        self.repo = os.path.join(self.tmp.name, "api")
        os.makedirs(os.path.join(self.repo, ".git"))
        self.plain_dir = os.path.join(self.tmp.name, "plain")
        os.makedirs(self.plain_dir)

    def test_default_group_when_missing(self):
        groups = config_manager.load_repo_groups(self.data_dir)
        self.assertEqual(len(groups), 1)
        self.assertEqual(groups[0].id, config_manager.DEFAULT_GROUP_ID)
        self.assertTrue(groups[0].selected)

    @mock.patch("config_manager.git_utils.get_remote_url", return_value="git@example.com:team/api.git")
    def test_add_repos_and_roundtrip(self, _):
        groups = config_manager.load_repo_groups(self.data_dir)
        added = config_manager.add_repos_to_group(groups[0], [self.repo, self.plain_dir, self.repo])
        self.assertEqual(added, [os.path.abspath(self.repo)])

        config_manager.save_repo_groups(self.data_dir, groups)
        loaded = config_manager.load_repo_groups(self.data_dir)
        self.assertEqual(loaded[0].repos[0].remote_url, "git@example.com:team/api.git")
        self.assertEqual(loaded[0].repos[0].path, os.path.abspath(self.repo))

    def test_group_management(self):
        groups = config_manager.load_repo_groups(self.data_dir)
        other = config_manager.add_group(groups, "前端")
        self.assertTrue(config_manager.rename_group(groups, other.id, "web"))
        self.assertTrue(config_manager.toggle_group(groups, "web", False))
        self.assertFalse(config_manager.find_group(groups, "web").selected)
        self.assertTrue(config_manager.remove_group(groups, "web"))
        self.assertFalse(config_manager.remove_group(groups, "web"))

    def test_selected_repo_paths(self):
        groups = [
            RepoGroup("g1", "one", True, [RepoItem("/r/a"), RepoItem("/r/b")]),
            RepoGroup("g2", "two", False, [RepoItem("/r/c")]),
            RepoGroup("g3", "three", True, [RepoItem("/r/a")]),
        ]
        self.assertEqual(config_manager.selected_repo_paths(groups), ["/r/a", "/r/b"])
        self.assertEqual(config_manager.selected_repo_paths(groups, ["two"]), ["/r/c"])

    def test_remove_repo(self):
        group = RepoGroup("g1", "one", True, [RepoItem(os.path.abspath(self.repo))])
        self.assertTrue(config_manager.remove_repo(group, self.repo))
        self.assertFalse(config_manager.remove_repo(group, self.repo))

    @mock.patch("config_manager.git_utils.get_remote_url", return_value="https://example.com/a.git")
    @mock.patch("config_manager.git_utils.check_for_updates")
    def test_check_group_status(self, mock_check, _):
        mock_check.side_effect = [True, GitFetchError("b", "fatal")]
        group = RepoGroup("g1", "one", True, [RepoItem("/r/a"), RepoItem("/r/b")])

        self.assertTrue(config_manager.check_group_status(group))
        self.assertTrue(group.repos[0].has_updates)
        self.assertEqual(group.repos[0].remote_url, "https://example.com/a.git")
        self.assertIsNone(group.repos[1].has_updates)
        self.assertIsNotNone(group.last_checked)

    @mock.patch("config_manager.git_utils.git_fetch")
    def test_update_group_fetches_flagged_repos(self, mock_fetch):
        mock_fetch.side_effect = [None, GitFetchError("c", "network")]
        group = RepoGroup(
            "g1",
            "one",
            True,
            [RepoItem("/r/a", has_updates=True), RepoItem("/r/b", has_updates=False), RepoItem("/r/c", has_updates=True)],
        )
        self.assertEqual(config_manager.update_group(group), ["/r/a"])
        self.assertFalse(group.repos[0].has_updates)
        self.assertTrue(group.repos[2].has_updates)
        self.assertEqual(mock_fetch.call_count, 2)


class TestAuthorAliases(unittest.TestCase):

    def test_add_replace_remove(self):
        with tempfile.TemporaryDirectory() as data_dir:
            aliases = config_manager.load_author_aliases(data_dir)
            config_manager.add_author_alias(aliases, " alice.w ", "Alice")
            config_manager.add_author_alias(aliases, "alice.w", "Alice W.")
            config_manager.save_author_aliases(data_dir, aliases)

            loaded = config_manager.load_author_aliases(data_dir)
            self.assertEqual([(a.original, a.alias) for a in loaded], [("alice.w", "Alice W.")])
            self.assertTrue(config_manager.remove_author_alias(loaded, "alice.w"))
            self.assertEqual(loaded, [])

    def test_corrupt_file_falls_back(self):
        with tempfile.TemporaryDirectory() as data_dir:
            with open(os.path.join(data_dir, GlobalConfig.ALIASES_FILE), "w") as f:
                f.write("{not json")
            self.assertEqual(config_manager.load_author_aliases(data_dir), [])


if __name__ == "__main__":
    unittest.main()
