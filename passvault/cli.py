"""
Interactive terminal front end for the vault.

Collects operator input, renders results and delegates every decision to
the vault session. Secrets are only ever printed on explicit request.
"""

import logging
from typing import Callable, List, Optional, Sequence, Tuple

from prompt_toolkit import PromptSession
from prompt_toolkit.shortcuts import clear
from prompt_toolkit.validation import ValidationError, Validator

from . import config
from . import policy
from .clipboard import ClipboardManager
from .exceptions import ClipboardUnavailableError, VaultError, VaultLockedError
from .generator import generate_password
from .session import VaultSession
from .storage import Credential

logger = logging.getLogger(__name__)


class IdleTimeout(Exception):
    """Raised inside the prompt loop when the vault was locked for inactivity."""


class MenuChoiceValidator(Validator):
    """Validator for numbered menu selections."""

    def __init__(self, upper: int, lower: int = 0):
        self.lower = lower
        self.upper = upper

    def validate(self, document):
        text = document.text.strip()
        if not text.isdigit() or not self.lower <= int(text) <= self.upper:
            raise ValidationError(message=f'Please enter a number between {self.lower} and {self.upper}')


def mask_table(credentials: Sequence[Credential]) -> str:
    """Render credentials as a table with secrets hidden."""
    headers = ('identifier', 'key', 'secret', 'website')
    rows = [(c.identifier, c.key, config.TABLE_PASSWORD_HIDDEN_TEXT, c.website) for c in credentials]
    widths = [max(len(str(v)) for v in column) for column in zip(headers, *rows)]
    line = '+'.join('-' * (w + 2) for w in widths)
    out = [line, '|'.join(f" {h:<{w}} " for h, w in zip(headers, widths)), line]
    out.extend('|'.join(f" {v:<{w}} " for v, w in zip(row, widths)) for row in rows)
    out.append(line)
    return '\n'.join(out)


def describe(credential: Credential) -> str:
    return f"Identifier: {credential.identifier} | Key: {credential.key} | Website: {credential.website}"


class VaultCli:
    """Menu loop driving a :class:`VaultSession`."""

    def __init__(self, vault: VaultSession, clipboard: Optional[ClipboardManager] = None):
        self.vault = vault
        self.clipboard = clipboard or ClipboardManager()
        self.prompt_session = PromptSession(validate_while_typing=False)
        self.last_generated_password: Optional[str] = None
        self.running = False
        self.menu: List[Tuple[str, Callable[[], None]]] = [
            ("Copy the secret of a credential to clipboard", self.copy_secret),
            ("List all my credentials (obfuscated)", self.list_credentials),
            ("Store a new credential", self.store_credential),
            ("Remove a credential", self.remove_credential),
            ("Generate a strong password", self.generate_password),
            ("[!!] Show the plain secret for a single credential", self.show_credential),
            ("[!!] Show the last generated password", self.show_last_generated_password),
            ("Backup your vault file", self.backup_vault),
            ("Change vault master password", self.change_master_password),
            ("Exit", self.exit),
        ]

    # ------------------------------------------------------------------
    # Prompt helpers
    # ------------------------------------------------------------------

    def ask(self, message: str, **kwargs) -> str:
        return self.prompt_session.prompt(message, inputhook=self.clipboard.inputhook, **kwargs)

    def ask_secret(self, message: str, **kwargs) -> str:
        return self.ask(message, is_password=True, **kwargs)

    def confirm(self, message: str, default: bool = False) -> bool:
        suffix = " [Y/n]: " if default else " [y/N]: "
        answer = self.ask(message + suffix).strip().lower()
        if not answer:
            return default
        return answer in ('y', 'yes')

    def pause(self) -> None:
        self.ask("Press enter to main menu...")

    def on_idle_lock(self) -> None:
        """Called from the idle timer thread; interrupts the pending prompt."""
        app = self.prompt_session.app
        if app.is_running:
            app.loop.call_soon_threadsafe(lambda: app.exit(exception=IdleTimeout()))

    @staticmethod
    def no_credentials() -> None:
        print('-------------------------------------')
        print("You don't have any stored credentials!")
        print('-------------------------------------')

    def select_credential(self, message: str) -> Optional[Credential]:
        credentials = self.vault.list_credentials()
        if not credentials:
            self.no_credentials()
            return None
        for number, credential in enumerate(credentials, start=1):
            print(f"  {number}) {describe(credential)}")
        print("  0) Abort...")
        choice = int(self.ask(f"{message} ", validator=MenuChoiceValidator(len(credentials))).strip())
        if choice == 0:
            return None
        return credentials[choice - 1]

    # ------------------------------------------------------------------
    # Session lifecycle
    # ------------------------------------------------------------------

    def run(self) -> int:
        try:
            if not self.vault.vault_exists():
                self.create_vault()
            while self.vault.is_locked():
                self.unlock_vault()
            clear()
            self.main_loop()
        except (IdleTimeout, VaultLockedError):
            print(f"\nIdle for {self.vault.timer.timeout} seconds... closing vault.\n")
            print("Bye!!!")
        except (KeyboardInterrupt, EOFError):
            print("\nBye!!!")
        finally:
            self.clipboard.clear()
            self.vault.close()
        return 0

    def create_vault(self) -> None:
        """Create a new vault, asking for a master password."""
        print('---- NO VAULT FOUND, CREATING... ---')
        strong = Validator.from_callable(
            policy.is_strong,
            error_message='Your password is too weak! ' + policy.POLICY_DESCRIPTION,
            move_cursor_to_end=True,
        )
        while True:
            plain = self.ask_secret('Provide a master password for your NEW vault: ', validator=strong)
            confirmation = self.ask_secret('Type it again so we can be sure you made no mistakes: ')
            if plain == confirmation:
                break
            print('Provided passwords does not match!')
        self.vault.create(plain)
        print(f'Great! We have created your vault at {self.vault.engine.filepath}!!!')

    def unlock_vault(self) -> None:
        password = self.ask_secret('Provide the master password of your vault: ')
        try:
            self.vault.unlock(password)
        except VaultError:
            print('Wrong password! Try again...')

    def main_loop(self) -> None:
        self.running = True
        while self.running:
            for number, (label, _) in enumerate(self.menu, start=1):
                print(f"  {number:>2}) {label}")
            choice = self.ask("Choose what you want to do: ",
                              validator=MenuChoiceValidator(len(self.menu), lower=1))
            _, handler = self.menu[int(choice.strip()) - 1]
            try:
                handler()
            except VaultLockedError:
                raise
            except VaultError as e:
                print(f"[-] {e}")
                self.pause()
            if self.running:
                clear()

    # ------------------------------------------------------------------
    # Menu handlers
    # ------------------------------------------------------------------

    def exit(self) -> None:
        print('Bye!!!')
        self.running = False
        self.vault.lock()

    def list_credentials(self) -> None:
        clear()
        credentials = self.vault.list_credentials()
        if not credentials:
            self.no_credentials()
        else:
            print(mask_table(credentials))
        self.pause()

    def store_credential(self) -> None:
        clear()
        taken = {c.identifier for c in self.vault.list_credentials()}

        def identifier_ok(text: str) -> bool:
            return len(text) >= config.IDENTIFIER_MIN_LENGTH and text not in taken

        identifier = self.ask(
            'Provide an identifier for this credential (eg: amazon): ',
            validator=Validator.from_callable(
                identifier_ok,
                error_message='Identifier must have at least 2 chars and must not be in use',
            ),
        )
        key = self.ask('Provide a key for your credential (usually a login): ')
        secret = self.ask_secret(
            'Provide a secret value for this credential: ',
            validator=Validator.from_callable(bool, error_message='You must provide a secret value'),
        )
        confirmation = self.ask_secret('Provide the same secret again: ')
        if confirmation != secret:
            print('The secret does not match the provided secret')
            self.pause()
            return
        website = self.ask('Provide a website for this credential (optional): ')
        self.vault.add_credential(Credential(identifier=identifier, key=key, secret=secret, website=website))
        print('Done! Your new credential was stored successfully!')
        self.pause()

    def copy_secret(self) -> None:
        clear()
        credential = self.select_credential('Select a credential to copy the secret to the clipboard:')
        if credential is None:
            return
        try:
            self.clipboard.copy(credential.secret)
        except ClipboardUnavailableError as e:
            print(f"[-] {e}")
        else:
            print(f'Credential copied to clipboard! (auto-clear in {self.clipboard.clear_timeout}s)')
        self.pause()

    def show_credential(self) -> None:
        clear()
        credential = self.select_credential('Select a credential to show the secret:')
        if credential is None:
            return
        for field, value in credential.to_dict().items():
            print(f"  {field:<10} {value}")
        self.pause()

    def remove_credential(self) -> None:
        clear()
        credential = self.select_credential('Select the credential you want to remove:')
        if credential is None:
            return
        if self.confirm(f'Are you sure you want to remove the credential "{credential.identifier}"? '
                        'This cannot be undone!'):
            self.vault.remove_credential(credential.identifier)
            print('Credential removed successfully!')
            self.pause()

    def generate_password(self) -> None:
        size_text = self.ask(
            f'What is the desired size? [{config.PASSWORD_GENERATOR_DEFAULT_LENGTH}]: ',
            validator=Validator.from_callable(
                lambda t: not t.strip() or (
                    t.strip().isdigit()
                    and config.PASSWORD_GENERATOR_MIN_LENGTH <= int(t) <= config.PASSWORD_GENERATOR_MAX_LENGTH
                ),
                error_message=(f'Size must be between {config.PASSWORD_GENERATOR_MIN_LENGTH} '
                               f'and {config.PASSWORD_GENERATOR_MAX_LENGTH}'),
            ),
        ).strip()
        size = int(size_text) if size_text else config.PASSWORD_GENERATOR_DEFAULT_LENGTH
        include_symbols = self.confirm('Should we add some special chars?', default=True)
        exclude = self.ask('Type any characters you want to exclude: ')
        if self.confirm(f'Exclude ambiguous characters ({config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS})?'):
            exclude += config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS

        try:
            self.last_generated_password = generate_password(size, include_symbols, exclude)
        except ValueError as e:
            print(f"[-] {e}")
            self.pause()
            return

        try:
            self.clipboard.copy(self.last_generated_password)
            message = 'Password generated and copied to clipboard! Should we display it?'
        except ClipboardUnavailableError:
            message = 'Password generated! Should we display it?'
        if self.confirm(message):
            self.print_generated()
            self.pause()

    def print_generated(self) -> None:
        print('------ generated password ------ ')
        print(self.last_generated_password)
        print('------ generated password ------ ')

    def show_last_generated_password(self) -> None:
        if not self.last_generated_password:
            print('There were no passwords generated for this session!')
        else:
            self.print_generated()
        self.pause()

    def backup_vault(self) -> None:
        print('Backing up your vault...')
        path = self.vault.backup()
        print(f'Done! Backup saved to {path}')
        self.pause()

    def change_master_password(self) -> None:
        clear()
        current = self.ask_secret(
            'Provide your CURRENT vault password (leave empty to abort): ',
            validator=Validator.from_callable(
                lambda t: not t or self.vault.check_current_password(t),
                error_message='Invalid current password',
                move_cursor_to_end=True,
            ),
        )
        if not current:
            print('Aborted!')
            self.pause()
            return

        new_password = self.ask_secret(
            'Provide a NEW vault password (leave empty to abort): ',
            validator=Validator.from_callable(
                lambda t: not t or policy.is_strong(t),
                error_message='The new password is not valid. ' + policy.POLICY_DESCRIPTION,
                move_cursor_to_end=True,
            ),
        )
        confirmation = self.ask_secret('Confirm the NEW vault password (leave empty to abort): ') if new_password else ''
        if not new_password or not confirmation:
            print('Aborted!')
        elif confirmation != new_password:
            print('The confirmation does not match the provided password.')
        else:
            print('Updating vault password...')
            self.vault.change_master_password(new_password)
            print('Vault password successfully updated!')
        self.pause()
