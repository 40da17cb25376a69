"""
OAuth2 authentication module for Google Contacts access.

Provides OAuth 2.0 authentication with support for:
- Any number of accounts, keyed by email address
- Automatic token refresh
- Credential storage in the configuration directory
- OAuth client from credentials.json or GCP_CLIENT_ID/GCP_CLIENT_SECRET
"""

import json
import logging
import re
from pathlib import Path

from google.auth.exceptions import RefreshError
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import InstalledAppFlow

from contacts_cli.config.loader import client_config_from_env
from contacts_cli.utils.paths import resolve_config_dir, safe_path_component

# OAuth2 scopes required for Google Contacts access
SCOPES = [
    "https://www.googleapis.com/auth/contacts",
    "https://www.googleapis.com/auth/userinfo.email",
    "openid",  # Required by Google when requesting userinfo.email
]

# Default auth timeout for network requests (in seconds)
DEFAULT_AUTH_TIMEOUT = 10

TOKENS_DIR_NAME = "tokens"

_EMAIL_PATTERN = re.compile(r"^[^@\s/\\]+@[^@\s/\\]+\.[^@\s/\\]+$")

logger = logging.getLogger(__name__)


class AuthenticationError(Exception):
    """Raised when authentication fails or credentials are invalid."""

    pass


class GoogleAuth:
    """
    OAuth2 authentication manager keyed by account email.

    Each account's token is stored in ``<config_dir>/tokens/<email>.json``.

    Attributes:
        config_dir: Directory for storing credentials and tokens
        credentials_path: Path to OAuth client credentials file
        tokens_dir: Directory holding one token file per account

    Usage:
        auth = GoogleAuth()

        # Load, refresh, or interactively obtain credentials
        creds = auth.authorize("someone@example.com")

        # Only cached credentials, never interactive
        creds = auth.get_credentials("someone@example.com")
    """

    def __init__(
        self,
        config_dir: Path | None = None,
        auth_timeout: int = DEFAULT_AUTH_TIMEOUT,
    ):
        """
        Initialize the authentication manager.

        Args:
            config_dir: Directory for storing credentials and tokens.
                       Defaults to ~/.contacts-cli/ or $CONTACTS_CLI_CONFIG_DIR
            auth_timeout: Timeout in seconds for network requests (default: 10)
        """
        self.config_dir = resolve_config_dir(config_dir)
        self.credentials_path = self.config_dir / "credentials.json"
        self.tokens_dir = self.config_dir / TOKENS_DIR_NAME
        self.auth_timeout = auth_timeout

    def _validate_account_id(self, account_id: str) -> None:
        """
        Validate an account identifier (an email address).

        Raises:
            ValueError: If account_id is not an email address
        """
        if not isinstance(account_id, str) or not _EMAIL_PATTERN.match(account_id):
            raise ValueError(
                f"Invalid account '{account_id}'. Must be an email address."
            )

    def _get_token_path(self, account_id: str) -> Path:
        """
        Get the token file path for an account.

        Raises:
            ValueError: If account_id is not valid
        """
        self._validate_account_id(account_id)
        return self.tokens_dir / f"{safe_path_component(account_id.lower())}.json"

    def _ensure_tokens_dir(self) -> None:
        """Create the tokens directory with owner-only permissions."""
        if not self.tokens_dir.exists():
            self.tokens_dir.mkdir(parents=True, mode=0o700)
            logger.debug(f"Created tokens directory: {self.tokens_dir}")

    def _load_credentials(self, account_id: str) -> Credentials | None:
        """
        Load credentials from the account's token file if it exists.

        Returns:
            Credentials object if token file exists and is valid, None otherwise
        """
        token_path = self._get_token_path(account_id)

        if not token_path.exists():
            logger.debug(f"No token file found for {account_id}")
            return None

        try:
            creds: Credentials = Credentials.from_authorized_user_file(
                str(token_path), SCOPES
            )
            logger.debug(f"Loaded credentials for {account_id}")
            return creds
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning(f"Invalid token file for {account_id}: {e}")
            return None

    def _save_credentials(
        self, account_id: str, creds: Credentials, email: str | None = None
    ) -> None:
        """
        Save credentials to the account's token file.

        Args:
            account_id: Account email
            creds: Credentials object to save
            email: Email address reported by Google, stored alongside the token
        """
        self._ensure_tokens_dir()
        token_path = self._get_token_path(account_id)

        token_data = json.loads(creds.to_json())
        if email:
            token_data["email"] = email

        token_path.write_text(json.dumps(token_data))
        token_path.chmod(0o600)
        logger.debug(f"Saved credentials for {account_id}")

    def _refresh_credentials(self, creds: Credentials) -> bool:
        """
        Attempt to refresh expired credentials.

        Returns:
            True if refresh succeeded, False otherwise
        """
        if not creds.refresh_token:
            logger.debug("No refresh token available")
            return False

        try:
            creds.refresh(Request())
            logger.debug("Successfully refreshed credentials")
            return True
        except RefreshError as e:
            logger.warning(f"Failed to refresh credentials: {e}")
            return False

    def _fetch_user_email(self, creds: Credentials) -> str | None:
        """
        Fetch the authenticated user's email address from Google.

        Returns:
            Email address if available, None otherwise
        """
        import urllib.request
        from urllib.error import URLError

        try:
            url = "https://www.googleapis.com/oauth2/v2/userinfo"
            req = urllib.request.Request(url)
            req.add_header("Authorization", f"Bearer {creds.token}")

            with urllib.request.urlopen(req, timeout=self.auth_timeout) as response:  # nosec B310
                data: dict[str, str] = json.loads(response.read().decode("utf-8"))
                return data.get("email")
        except (URLError, OSError, ValueError) as e:
            logger.debug(f"Failed to fetch user email: {e}")
            return None

    def _build_flow(self) -> InstalledAppFlow:
        """
        Build the installed-app flow from credentials.json or the environment.

        Raises:
            FileNotFoundError: If neither source provides an OAuth client
        """
        if self.credentials_path.exists():
            return InstalledAppFlow.from_client_secrets_file(
                str(self.credentials_path), SCOPES
            )

        client_config = client_config_from_env()
        if client_config is not None:
            logger.debug("Using OAuth client from environment variables")
            return InstalledAppFlow.from_client_config(client_config, SCOPES)

        raise FileNotFoundError(
            f"OAuth credentials file not found: {self.credentials_path}\n"
            "Download your OAuth client credentials from Google Cloud Console "
            "and save them to this location, or set GCP_CLIENT_ID and "
            "GCP_CLIENT_SECRET."
        )

    def get_credentials(self, account_id: str) -> Credentials | None:
        """
        Get valid credentials for an account without user interaction.

        Returns:
            Valid Credentials object, or None if not available

        Raises:
            ValueError: If account_id is invalid
        """
        creds = self._load_credentials(account_id)

        if creds is None:
            return None

        if creds.valid:
            return creds

        if creds.expired and creds.refresh_token and self._refresh_credentials(creds):
            self._save_credentials(account_id, creds, email=account_id)
            return creds

        return None

    def authenticate(self, account_id: str, force_reauth: bool = False) -> Credentials:
        """
        Authenticate a Google account.

        Returns cached credentials unless force_reauth is set or none are
        usable; otherwise runs the browser-based OAuth flow with the account
        as login hint.

        Raises:
            ValueError: If account_id is invalid
            AuthenticationError: If authentication fails
            FileNotFoundError: If no OAuth client is configured
        """
        self._validate_account_id(account_id)

        if not force_reauth:
            creds = self.get_credentials(account_id)
            if creds is not None:
                logger.info(f"Using existing credentials for {account_id}")
                return creds

        flow = self._build_flow()

        logger.info(f"Starting OAuth flow for {account_id}")

        try:
            new_creds: Credentials = flow.run_local_server(
                port=0, login_hint=account_id, access_type="offline"
            )
        except Exception as e:
            logger.error(f"Authentication failed for {account_id}: {e}")
            raise AuthenticationError(
                f"Failed to authenticate {account_id}: {e}"
            ) from e

        email = self._fetch_user_email(new_creds)
        if email and email.lower() != account_id.lower():
            logger.warning(
                f"Authorized as {email} but credentials are stored for {account_id}"
            )

        self._save_credentials(account_id, new_creds, email=email or account_id)
        logger.info(f"Successfully authenticated {account_id}")
        return new_creds

    def authorize(self, account_id: str) -> Credentials:
        """Credential provider entry point: cached, refreshed, or interactive."""
        return self.authenticate(account_id)

    def is_authenticated(self, account_id: str) -> bool:
        """Check if an account has valid cached credentials."""
        return self.get_credentials(account_id) is not None
