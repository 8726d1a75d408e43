"""
Tests for the terminal front end and clipboard handling.

Prompts are scripted by replacing ``VaultCli.ask``; the prompt_toolkit
session runs against a pipe input and a dummy output.
"""
import pytest

pytest.importorskip("PyQt5.QtWidgets")

from prompt_toolkit.application import create_app_session
from prompt_toolkit.document import Document
from prompt_toolkit.input import create_pipe_input
from prompt_toolkit.output import DummyOutput
from prompt_toolkit.validation import ValidationError

from passvault import config
from passvault.cli import MenuChoiceValidator, VaultCli, describe, mask_table
from passvault.clipboard import ClipboardManager
from passvault.exceptions import ClipboardUnavailableError
from passvault.main import build_parser, main
from passvault.session import VaultSession
from passvault.storage import Credential

from .conftest import MASTER_PASSWORD, NEW_MASTER_PASSWORD


class FakeClipboard:
    clear_timeout = 30

    def __init__(self):
        self.copied = []

    def copy(self, text):
        self.copied.append(text)

    def clear(self):
        pass

    def inputhook(self, context):
        pass


@pytest.fixture
def terminal():
    with create_pipe_input() as pipe_input:
        with create_app_session(input=pipe_input, output=DummyOutput()):
            yield


@pytest.fixture
def cli(engine, fake_timer, terminal, monkeypatch):
    engine.create(MASTER_PASSWORD)
    session = VaultSession(engine, idle_timeout=60, timer_factory=fake_timer)
    session.unlock(MASTER_PASSWORD)
    front = VaultCli(session, clipboard=FakeClipboard())
    front.answers = []
    monkeypatch.setattr(front, "ask", lambda message, **kwargs: front.answers.pop(0))
    yield front
    session.close()


class TestRendering:
    """Tables and selection validators."""

    def test_mask_table_hides_secrets(self):
        table = mask_table([Credential("amazon", "bob", "s3cret", "amazon.com")])
        assert "s3cret" not in table
        assert config.TABLE_PASSWORD_HIDDEN_TEXT in table
        assert "amazon.com" in table

    def test_describe_omits_secret(self):
        assert "s3cret" not in describe(Credential("amazon", "bob", "s3cret"))

    @pytest.mark.parametrize("text", ["0", "3", " 2 "])
    def test_menu_choice_accepts(self, text):
        MenuChoiceValidator(3).validate(Document(text))

    @pytest.mark.parametrize("text", ["", "4", "-1", "two"])
    def test_menu_choice_rejects(self, text):
        with pytest.raises(ValidationError):
            MenuChoiceValidator(3).validate(Document(text))

    def test_menu_choice_lower_bound(self):
        with pytest.raises(ValidationError):
            MenuChoiceValidator(10, lower=1).validate(Document("0"))


class TestHandlers:
    """Menu handlers driven with scripted answers."""

    def test_store_credential(self, cli):
        cli.answers = ["amazon", "bob", "s3cret", "s3cret", "amazon.com", ""]
        cli.store_credential()
        assert cli.vault.list_credentials() == (Credential("amazon", "bob", "s3cret", "amazon.com"),)

    def test_store_credential_mismatched_secret(self, cli):
        cli.answers = ["amazon", "bob", "s3cret", "other", ""]
        cli.store_credential()
        assert cli.vault.list_credentials() == ()

    def test_copy_secret(self, cli):
        cli.vault.add_credential(Credential("amazon", "bob", "s3cret"))
        cli.answers = ["1", ""]
        cli.copy_secret()
        assert cli.clipboard.copied == ["s3cret"]

    def test_remove_credential_requires_confirmation(self, cli):
        cli.vault.add_credential(Credential("amazon", "bob", "s3cret"))
        cli.answers = ["1", "n"]
        cli.remove_credential()
        assert cli.vault.credential_count() == 1
        cli.answers = ["1", "y", ""]
        cli.remove_credential()
        assert cli.vault.credential_count() == 0

    def test_generate_password(self, cli):
        cli.answers = ["24", "", "", "n", "n"]
        cli.generate_password()
        assert len(cli.last_generated_password) == 24
        assert cli.clipboard.copied == [cli.last_generated_password]

    def test_change_master_password(self, cli):
        cli.answers = [MASTER_PASSWORD, NEW_MASTER_PASSWORD, NEW_MASTER_PASSWORD, ""]
        cli.change_master_password()
        assert cli.vault.check_current_password(NEW_MASTER_PASSWORD)

    def test_change_master_password_abort(self, cli):
        cli.answers = ["", ""]
        cli.change_master_password()
        assert cli.vault.check_current_password(MASTER_PASSWORD)

    def test_exit_locks(self, cli):
        cli.exit()
        assert not cli.running
        assert cli.vault.is_locked()


class TestClipboard:
    """Clipboard access without a display."""

    @pytest.fixture
    def headless(self, monkeypatch):
        monkeypatch.setattr("passvault.clipboard.platform.system", lambda: "Linux")
        monkeypatch.delenv("DISPLAY", raising=False)
        monkeypatch.delenv("WAYLAND_DISPLAY", raising=False)

    def test_copy_without_display(self, headless):
        with pytest.raises(ClipboardUnavailableError):
            ClipboardManager().copy("s3cret")

    def test_clear_before_copy_is_noop(self):
        ClipboardManager().clear()


class TestEntryPoint:
    """Argument parsing and startup."""

    def test_parser_defaults(self):
        args = build_parser().parse_args([])
        assert args.vault is None
        assert args.idle_timeout == config.IDLE_TIMEOUT_SECONDS
        assert not args.verbose

    def test_parser_options(self):
        args = build_parser().parse_args(["--vault", "/tmp/v.json", "--idle-timeout", "0", "-v"])
        assert (args.vault, args.idle_timeout, args.verbose) == ("/tmp/v.json", 0, True)

    def test_vault_already_open(self, engine, capsys):
        assert main(["--vault", engine.filepath]) == 1
        assert "already open" in capsys.readouterr().err
