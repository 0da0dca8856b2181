"""Tests for the command-line interface."""

import io
from unittest.mock import patch

import pytest
from rich.console import Console

from bibreview.cli import BibReviewCLI, create_parser, main
from bibreview.config import Settings
from bibreview.console import ConsoleUI
from bibreview.models.record import Decision
from bibreview.services.site_fetchers import SiteFetcherRegistry

from tests.conftest import FULL_TEXT_URL, SAMPLE_BIB, FakeClient

pytestmark = pytest.mark.usefixtures("fresh_settings")


@pytest.fixture
def bib_file(tmp_path):
    path = tmp_path / "refs.bib"
    path.write_text(SAMPLE_BIB, encoding="utf-8")
    return path


@pytest.fixture
def output():
    return io.StringIO()


def _make_cli(base, bib, output):
    settings = Settings.load(base)
    settings.update(reviewer_id="carol", bib_path=bib)
    cli = BibReviewCLI(settings, ConsoleUI(Console(file=output, width=200)))
    cli.navigator.enricher.registry = SiteFetcherRegistry(FakeClient())
    return cli


@pytest.fixture
def cli(tmp_path, bib_file, output):
    return _make_cli(tmp_path, bib_file, output)


class TestParser:
    def test_mark_commands(self):
        args = create_parser().parse_args(["--reviewer", "x", "accept", "key1"])
        assert args.command == "accept"
        assert args.key == "key1"
        assert args.reviewer == "x"

    def test_review_options(self):
        args = create_parser().parse_args(["review", "--skip-reviewed", "--start", "key2"])
        assert args.skip_reviewed is True
        assert args.start == "key2"

    def test_command_required(self):
        with pytest.raises(SystemExit):
            create_parser().parse_args([])


class TestCommands:
    def test_mark_saves_to_file(self, cli, bib_file, output):
        cli.cmd_mark("key2", Decision.ACCEPTED)
        assert "carol: accepted," in bib_file.read_text(encoding="utf-8")
        assert "Accepted" in output.getvalue()

    def test_mark_twice_reports_already_done(self, cli, bib_file, output):
        cli.cmd_mark("key2", Decision.REJECTED)
        saved = bib_file.read_text(encoding="utf-8")
        cli.cmd_mark("key2", Decision.REJECTED)
        assert "Already reviewed" in output.getvalue()
        assert bib_file.read_text(encoding="utf-8") == saved

    def test_no_autosave(self, cli, bib_file):
        cli.settings.update(autosave=False)
        cli.cmd_mark("key2", Decision.ACCEPTED)
        assert bib_file.read_text(encoding="utf-8") == SAMPLE_BIB
        assert cli.context.document.modified

    def test_status(self, cli, output):
        cli.cmd_mark("key2", Decision.ACCEPTED)
        cli.cmd_status()
        text = output.getvalue()
        assert "key1" in text and "key3" in text
        assert "Accepted: 1" in text
        assert "Unreviewed: 2" in text


def _script(*choices):
    return patch("bibreview.cli.Prompt.ask", side_effect=list(choices))


def _record_text(text, key):
    start = text.index(f"{{{key},")
    following = text.find("\n@", start)
    return text[start:] if following == -1 else text[start:following]


class TestReviewSession:
    def test_keys_move_and_mark(self, cli, bib_file):
        with _script("n", "a", "p", "r", "q") as ask:
            cli.cmd_review()
        assert ask.call_count == 5

        saved = bib_file.read_text(encoding="utf-8")
        assert "carol: rejected," in _record_text(saved, "key1")
        assert "carol: accepted," in _record_text(saved, "key2")
        assert "review" not in _record_text(saved, "key3")

    def test_first_record_is_enriched_and_saved(self, cli, bib_file, output):
        with _script("q"):
            cli.cmd_review()
        saved = bib_file.read_text(encoding="utf-8")
        assert "We study software repositories." in _record_text(saved, "key1")
        assert "Mining Software Repositories" in output.getvalue()

    def test_open_full_text(self, cli):
        with _script("o", "q"), patch("bibreview.cli.webbrowser.open") as browser:
            cli.cmd_review()
        browser.assert_called_once_with(FULL_TEXT_URL)

    def test_open_without_full_text_warns(self, cli, output):
        with _script("o", "q"), patch("bibreview.cli.webbrowser.open") as browser:
            cli.cmd_review(start="key3")
        browser.assert_not_called()
        assert "no full-text URL" in output.getvalue()

    def test_skip_reviewed(self, tmp_path, bib_file, output):
        bib_file.write_text(
            SAMPLE_BIB.replace(
                "@inproceedings{key1,\n", "@inproceedings{key1,\n  review = {carol: accepted,},\n"
            ),
            encoding="utf-8",
        )
        cli = _make_cli(tmp_path, bib_file, output)
        with _script("q"):
            cli.cmd_review(skip_reviewed=True)
        shown = output.getvalue()
        assert "Already Enriched" in shown
        assert "Mining Software Repositories" not in shown

    def test_start_at_key(self, cli, bib_file):
        with _script("a", "q"):
            cli.cmd_review(start="key3")
        saved = bib_file.read_text(encoding="utf-8")
        assert "carol: accepted," in _record_text(saved, "key3")
        assert "carol" not in _record_text(saved, "key1")

    def test_unknown_start_key_reports_error(self, cli, output):
        with _script() as ask:
            cli.cmd_review(start="missing")
        ask.assert_not_called()
        assert "missing" in output.getvalue()

    def test_errors_do_not_end_session(self, cli, output):
        with _script("p", "n", "n", "n", "q") as ask:
            cli.cmd_review()
        assert ask.call_count == 5
        text = output.getvalue()
        assert "Start of document" in text
        assert "Unknown Site" in text

    def test_string_header_file(self, tmp_path, output):
        bib = tmp_path / "strings.bib"
        bib.write_text('@string{acm = "ACM"}\n\n' + SAMPLE_BIB, encoding="utf-8")
        cli = _make_cli(tmp_path, bib, output)

        with _script("n", "a", "q"):
            cli.cmd_review()
        saved = bib.read_text(encoding="utf-8")
        assert saved.startswith('@string{acm = "ACM"}')
        assert "carol: accepted," in _record_text(saved, "key2")


class TestEnrichCommand:
    def test_enriches_missing_fields(self, cli, bib_file, output):
        cli.cmd_enrich()
        saved = bib_file.read_text(encoding="utf-8")
        assert "We study software repositories." in _record_text(saved, "key1")
        assert FULL_TEXT_URL in _record_text(saved, "key1")
        assert "Records enriched: 1, failed: 0" in output.getvalue()

    def test_fetch_failures_counted(self, cli, bib_file, output):
        cli.navigator.enricher.registry = SiteFetcherRegistry(FakeClient({}))
        cli.cmd_enrich()
        assert "Records enriched: 0, failed: 1" in output.getvalue()
        assert bib_file.read_text(encoding="utf-8") == SAMPLE_BIB


class TestMain:
    def test_reject_by_key(self, tmp_path, bib_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        code = main(["--bib", str(bib_file), "--reviewer", "dave", "reject", "key2"])
        assert code == 0
        assert "dave: rejected," in bib_file.read_text(encoding="utf-8")

    def test_unknown_key_fails(self, tmp_path, bib_file, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert main(["--bib", str(bib_file), "accept", "nope"]) == 1

    def test_missing_file_fails(self, tmp_path, monkeypatch):
        monkeypatch.chdir(tmp_path)
        assert main(["--bib", str(tmp_path / "absent.bib"), "status"]) == 1
