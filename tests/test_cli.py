"""Tests for CLI commands."""

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from vellum.cli import main

POST = "---\ntitle: Hello\ndate: 2024-01-02\n---\nSee ![[cat.png]]\n"


def _write(path: Path, content: str = "x") -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


class TestInitCommand:
    """Tests for the init command."""

    def test_creates_config_and_collections(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["init"])

            assert result.exit_code == 0
            assert Path("vellum.toml").exists()
            for collection in ("posts", "projects", "docs", "pages", "gallery"):
                assert Path("content", collection).is_dir()
            assert "Created" in result.output

    def test_fails_if_config_exists_without_force(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("vellum.toml").write_text("# mine")

            result = runner.invoke(main, ["init"])

            assert result.exit_code == 1
            assert "already exists" in result.output
            assert Path("vellum.toml").read_text() == "# mine"

    def test_force_overwrites_existing(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("vellum.toml").write_text("# mine")

            result = runner.invoke(main, ["init", "--force"])

            assert result.exit_code == 0
            assert "[site]" in Path("vellum.toml").read_text()


class TestBuildCommand:
    """Tests for the build command."""

    def test_fails_without_config(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["build"])

            assert result.exit_code == 1
            assert "vellum init" in result.output

    def test_fails_with_invalid_image_paths(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            Path("vellum.toml").write_text('[markdown]\nimage_paths = "sideways"\n')

            result = runner.invoke(main, ["build"])

            assert result.exit_code == 1
            assert "image_paths" in result.output

    def test_builds_with_config(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])
            _write(Path("content/posts/hello.md"), POST)
            _write(Path("content/posts/attachments/cat.png"))

            result = runner.invoke(main, ["build"])

            assert result.exit_code == 0
            assert "Done: 1 pages" in result.output
            assert Path("dist/posts/hello/index.html").exists()
            assert Path("dist/posts/attachments/cat.png").exists()

    def test_fails_with_no_entries(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])

            result = runner.invoke(main, ["build"])

            assert result.exit_code == 1
            assert "No entries found" in result.output

    def test_drafts_flag(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])
            _write(Path("content/posts/wip.md"), "---\ntitle: WIP\ndraft: true\n---\nSoon")

            assert runner.invoke(main, ["build"]).exit_code == 1
            result = runner.invoke(main, ["build", "--drafts"])

            assert result.exit_code == 0
            assert Path("dist/posts/wip/index.html").exists()

    @patch("vellum.build.build", return_value=3)
    def test_passes_flags(self, mock_build):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])

            result = runner.invoke(main, ["build", "--force", "--quiet"])

            assert result.exit_code == 0
            _, kwargs = mock_build.call_args
            assert kwargs == {"include_drafts": None, "force": True}


class TestRenderCommand:
    def test_renders_markdown(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])
            _write(Path("content/posts/hello.md"), POST)

            result = runner.invoke(main, ["render", "content/posts/hello.md"])

            assert result.exit_code == 0
            assert 'src="./attachments/cat.png"' in result.output

    def test_missing_file(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            result = runner.invoke(main, ["render", "missing.md"])

            assert result.exit_code == 2


class TestSyncAttachmentsCommand:
    def test_syncs(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])
            _write(Path("content/docs/attachments/manual.pdf"))

            result = runner.invoke(main, ["sync-attachments"])

            assert result.exit_code == 0
            assert "Synced 1 attachments" in result.output
            assert Path("dist/docs/attachments/manual.pdf").exists()


class TestCleanCommand:
    """Tests for the clean command."""

    def test_removes_output_directory(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])
            _write(Path("dist/index.html"))

            result = runner.invoke(main, ["clean"])

            assert result.exit_code == 0
            assert not Path("dist").exists()
            assert "Removed" in result.output

    def test_nothing_to_clean(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])

            result = runner.invoke(main, ["clean"])

            assert result.exit_code == 0
            assert "Nothing to clean" in result.output

    def test_preserves_content(self):
        runner = CliRunner()
        with runner.isolated_filesystem():
            runner.invoke(main, ["init"])
            _write(Path("content/posts/hello.md"), POST)
            _write(Path("dist/index.html"))

            runner.invoke(main, ["clean"])

            assert Path("vellum.toml").exists()
            assert Path("content/posts/hello.md").exists()


class TestMainGroup:
    """Tests for the main CLI group."""

    def test_help_shows_commands(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--help"])

        assert result.exit_code == 0
        for command in ("init", "build", "render", "sync-attachments", "clean"):
            assert command in result.output

    def test_version_flag(self):
        runner = CliRunner()
        result = runner.invoke(main, ["--version"])

        assert result.exit_code == 0
        assert "0.1.0" in result.output
