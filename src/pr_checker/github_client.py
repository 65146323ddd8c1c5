"""GitHub client for fetching PR data and posting comments."""

import base64
import binascii
import time
from dataclasses import dataclass, field

import jwt
import requests
from github import Github, GithubException

from pr_checker.analysis.changed_files import ChangedFile, extension_of, is_relevant_file


@dataclass
class PRData:
    """PR data container."""

    owner: str
    repo: str
    number: int
    title: str
    author: str
    description: str
    base_sha: str
    head_sha: str
    url: str
    files: list[ChangedFile] = field(default_factory=list)


class GitHubClient:
    """Client for interacting with GitHub API."""

    def __init__(self, token: str):
        """Initialize with GitHub token."""
        self.client = Github(token)

    @classmethod
    def from_app_credentials(
        cls, app_id: str, installation_id: str, private_key: str
    ) -> "GitHubClient":
        """Authenticate as a GitHub App installation.

        Raises:
            ValueError: If the key is not PEM or GitHub rejects the exchange.
        """
        token = exchange_installation_token(app_jwt(app_id, private_key), installation_id)
        return cls(token)

    def fetch_pr(
        self, owner: str, repo: str, pr_number: int, ignore: list[str] | None = None
    ) -> PRData:
        """Fetch PR metadata and the before/after contents of every changed file."""
        repo_obj = self.client.get_repo(f"{owner}/{repo}")
        pr = repo_obj.get_pull(pr_number)
        base_sha = pr.base.sha
        head_sha = pr.head.sha

        files = []
        for f in pr.get_files():
            if not is_relevant_file(f.filename, ignore):
                continue
            before_path = f.previous_filename or f.filename
            before = "" if f.status == "added" else self._read_file(repo_obj, before_path, base_sha)
            after = "" if f.status == "removed" else self._read_file(repo_obj, f.filename, head_sha)
            files.append(ChangedFile(
                path=f.filename,
                before_content=before,
                after_content=after,
                extension=extension_of(f.filename),
            ))

        return PRData(
            owner=owner,
            repo=repo,
            number=pr_number,
            title=pr.title,
            author=pr.user.login,
            description=pr.body or "",
            base_sha=base_sha,
            head_sha=head_sha,
            url=pr.html_url,
            files=files,
        )

    def list_changed_files(
        self, owner: str, repo: str, pr_number: int, ignore: list[str] | None = None
    ) -> list[ChangedFile]:
        return self.fetch_pr(owner, repo, pr_number, ignore).files

    @staticmethod
    def _read_file(repo_obj, path: str, ref: str) -> str:
        try:
            contents = repo_obj.get_contents(path, ref=ref)
        except GithubException:
            return ""
        if isinstance(contents, list):
            # Path is a directory
            return ""
        try:
            return contents.decoded_content.decode("utf-8")
        except UnicodeDecodeError:
            return ""

    def post_comment(self, owner: str, repo: str, pr_number: int, body: str) -> str:
        """Post a comment on a PR. Returns the comment URL."""
        repo_obj = self.client.get_repo(f"{owner}/{repo}")
        pr = repo_obj.get_pull(pr_number)
        comment = pr.create_issue_comment(body)
        return comment.html_url


GITHUB_API_URL = "https://api.github.com"

# Installation tokens are minted from a JWT valid for at most ten minutes
APP_JWT_LIFETIME_SECONDS = 600
APP_JWT_CLOCK_SKEW_SECONDS = 60

_TOKEN_EXCHANGE_ERRORS = {
    401: "GitHub rejected the App JWT (401); check GITHUB_APP_ID matches the private key",
    404: "GitHub App installation not found (404); check GITHUB_APP_INSTALLATION_ID",
}


def decode_private_key(value: str) -> str:
    """Accept a PEM key as-is (escaped newlines allowed) or base64 encoded."""
    value = value.strip()
    if "-----BEGIN" in value:
        return value.replace("\\n", "\n")
    try:
        return base64.b64decode(value, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise ValueError(
            "GITHUB_APP_PRIVATE_KEY_BASE64 is neither a PEM key nor valid base64"
        ) from e


def app_jwt(app_id: str, private_key: str, now: int | None = None) -> str:
    """Sign the short-lived RS256 JWT that identifies the App itself.

    Raises:
        ValueError: If the key is not PEM or cannot sign.
    """
    if "-----BEGIN" not in private_key or "-----END" not in private_key:
        raise ValueError("GitHub App private key must be in PEM format")

    issued = int(time.time()) if now is None else now
    claims = {
        "iat": issued - APP_JWT_CLOCK_SKEW_SECONDS,
        "exp": issued + APP_JWT_LIFETIME_SECONDS,
        "iss": app_id,
    }
    try:
        return jwt.encode(claims, private_key, algorithm="RS256")
    except (jwt.PyJWTError, ValueError, TypeError) as e:
        raise ValueError(f"Could not sign GitHub App JWT: {e}") from e


def exchange_installation_token(signed_jwt: str, installation_id: str) -> str:
    """Trade an App JWT for an installation access token.

    Raises:
        ValueError: If GitHub does not return a token.
    """
    response = requests.post(
        f"{GITHUB_API_URL}/app/installations/{installation_id}/access_tokens",
        headers={
            "Authorization": f"Bearer {signed_jwt}",
            "Accept": "application/vnd.github+json",
        },
        timeout=30,
    )
    if not response.ok:
        message = _TOKEN_EXCHANGE_ERRORS.get(
            response.status_code,
            f"Installation token request failed ({response.status_code}): {response.text}",
        )
        raise ValueError(message)

    token = response.json().get("token")
    if not token:
        raise ValueError("Installation token response did not include a token")
    return token
