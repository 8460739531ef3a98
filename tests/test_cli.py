"""Tests for CLI module."""

from pathlib import Path
from unittest.mock import Mock, patch

import pytest

from githubby.cli import create_parser, main
from githubby.errors import EmptyResultError, FetchError


class TestParser:
    """Test cases for argument parsing."""

    def test_parse_backup_defaults(self) -> None:
        """Test argument parsing with default values."""
        args = create_parser().parse_args(["backup", "-u", "octocat"])

        assert args.command == "backup"
        assert args.user == "octocat"
        assert args.output is None
        assert args.limit == 0
        assert args.protocol is None
        assert args.verbose is False
        assert args.dry_run is False
        assert args.config is None

    def test_parse_backup_all_options(self) -> None:
        """Test argument parsing with all options."""
        args = create_parser().parse_args(
            [
                "--config", "custom.yaml",
                "-v",
                "-D",
                "-t", "ghp_token",
                "--timeout", "5",
                "backup",
                "-u", "octocat",
                "-o", "out",
                "-l", "3",
                "--protocol", "ssh",
                "--allow-empty",
            ]
        )

        assert args.config == Path("custom.yaml")
        assert args.verbose is True
        assert args.dry_run is True
        assert args.token == "ghp_token"
        assert args.timeout == 5
        assert args.output == Path("out")
        assert args.limit == 3
        assert args.protocol == "ssh"
        assert args.allow_empty is True

    def test_parse_clean(self) -> None:
        args = create_parser().parse_args(
            ["clean", "-r", "octocat/Hello-World", "-d", "30", "-c", "5"]
        )

        assert args.command == "clean"
        assert args.repository == "octocat/Hello-World"
        assert args.filter_days == 30
        assert args.filter_count == 5

    def test_subcommand_required(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args([])

    def test_backup_requires_user(self) -> None:
        with pytest.raises(SystemExit):
            create_parser().parse_args(["backup"])


@pytest.fixture
def no_default_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run in an empty directory so no default config file is picked up."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("GITHUB_TOKEN", raising=False)
    return tmp_path


@pytest.mark.usefixtures("no_default_config")
class TestMain:
    """Test cases for the main entry point."""

    @patch("githubby.cli.RepositoryBackup")
    def test_backup_success(self, mock_backup_class: Mock, tmp_path: Path) -> None:
        mock_backup = mock_backup_class.return_value.__enter__.return_value
        mock_backup.run.return_value.is_success = True

        with pytest.raises(SystemExit) as exc_info:
            main(["backup", "-u", "octocat", "-o", str(tmp_path / "out"), "-l", "2"])

        assert exc_info.value.code == 0
        mock_backup.run.assert_called_once_with(
            "octocat",
            tmp_path / "out",
            limit=2,
            dry_run=False,
            allow_empty=False,
        )

    @patch("githubby.cli.RepositoryBackup")
    def test_backup_with_failures(self, mock_backup_class: Mock) -> None:
        mock_backup = mock_backup_class.return_value.__enter__.return_value
        mock_backup.run.return_value.is_success = False
        mock_backup.run.return_value.failed = []

        with pytest.raises(SystemExit) as exc_info:
            main(["backup", "-u", "octocat"])

        assert exc_info.value.code == 1

    @pytest.mark.parametrize("error", [FetchError("down"), EmptyResultError("none")])
    @patch("githubby.cli.RepositoryBackup")
    def test_backup_listing_error(self, mock_backup_class: Mock, error: Exception) -> None:
        mock_backup = mock_backup_class.return_value.__enter__.return_value
        mock_backup.run.side_effect = error

        with pytest.raises(SystemExit) as exc_info:
            main(["backup", "-u", "octocat"])

        assert exc_info.value.code == 1

    @patch("githubby.cli.RepositoryBackup")
    def test_backup_uses_config_file(self, mock_backup_class: Mock, tmp_path: Path) -> None:
        config_file = tmp_path / "settings.yaml"
        config_file.write_text(
            "output: from-config\nprotocol: ssh\nallow_empty: true\ndry_run_delay: 0\n",
            encoding="utf-8",
        )
        mock_backup = mock_backup_class.return_value.__enter__.return_value
        mock_backup.run.return_value.is_success = True

        with pytest.raises(SystemExit):
            main(["--config", str(config_file), "backup", "-u", "octocat"])

        engine = mock_backup_class.call_args.kwargs["engine"]
        assert engine.protocol == "ssh"
        assert mock_backup_class.call_args.kwargs["dry_run_delay"] == 0
        assert mock_backup.run.call_args.args[1] == Path("from-config")
        assert mock_backup.run.call_args.kwargs["allow_empty"] is True

    def test_missing_config_file(self, tmp_path: Path) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["--config", str(tmp_path / "missing.yaml"), "backup", "-u", "octocat"])

        assert exc_info.value.code == 1

    @patch("githubby.cli.ReleaseCleanup")
    def test_clean_success(self, mock_cleanup_class: Mock) -> None:
        mock_cleanup_class.return_value.run.return_value.is_success = True

        with pytest.raises(SystemExit) as exc_info:
            main(["-t", "ghp_token", "clean", "-r", "octocat/Hello-World", "-c", "5"])

        assert exc_info.value.code == 0
        run_args = mock_cleanup_class.return_value.run.call_args
        assert run_args.args[:2] == ("octocat", "Hello-World")
        assert run_args.args[2].keep_count == 5
        assert run_args.args[2].max_age_days is None

    @patch("githubby.cli.ReleaseCleanup")
    def test_clean_requires_token(self, mock_cleanup_class: Mock) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["clean", "-r", "octocat/Hello-World", "-c", "5"])

        assert exc_info.value.code == 1
        mock_cleanup_class.assert_not_called()

    @patch("githubby.cli.ReleaseCleanup")
    def test_clean_dry_run_without_token(self, mock_cleanup_class: Mock) -> None:
        mock_cleanup_class.return_value.run.return_value.is_success = True

        with pytest.raises(SystemExit) as exc_info:
            main(["--dry-run", "clean", "-r", "octocat/Hello-World", "-d", "30"])

        assert exc_info.value.code == 0
        assert mock_cleanup_class.return_value.run.call_args.kwargs["dry_run"] is True

    @patch("githubby.cli.ReleaseCleanup")
    def test_clean_requires_filter(self, mock_cleanup_class: Mock) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["-t", "ghp_token", "clean", "-r", "octocat/Hello-World"])

        assert exc_info.value.code == 1
        mock_cleanup_class.assert_not_called()

    @pytest.mark.parametrize("repository", ["octocat", "/repo", "a/b/c"])
    def test_clean_rejects_bad_repository(self, repository: str) -> None:
        with pytest.raises(SystemExit) as exc_info:
            main(["-t", "ghp_token", "clean", "-r", repository, "-c", "1"])

        assert exc_info.value.code == 1

    @patch("githubby.cli.RepositoryBackup")
    def test_keyboard_interrupt(self, mock_backup_class: Mock) -> None:
        mock_backup = mock_backup_class.return_value.__enter__.return_value
        mock_backup.run.side_effect = KeyboardInterrupt

        with pytest.raises(SystemExit) as exc_info:
            main(["backup", "-u", "octocat"])

        assert exc_info.value.code == 130
