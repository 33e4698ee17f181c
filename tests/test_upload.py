"""
Tests for the YouTube upload flow.
"""

import json

import pytest

from shorts_engine.config import ConfigError
from shorts_engine.errors import (
    AuthExchangeError,
    AuthRequired,
    NotFoundError,
    PublishError,
    ValidationError,
)
from shorts_engine.upload import (
    AuthState,
    FileCredentialStore,
    GoogleOAuth,
    MemoryCredentialStore,
    UploadCoordinator,
    UploadState,
)

TOKEN = {"token": "access", "refresh_token": "refresh", "client_id": "id", "client_secret": "secret"}
AUTH_URL = "https://accounts.google.com/o/oauth2/auth?client_id=id&scope=youtube.upload"


class FakeOAuth:
    def __init__(self, token=None, error=None):
        self.token = token or TOKEN
        self.error = error
        self.codes = []

    def authorization_url(self):
        return AUTH_URL

    def exchange_code(self, code):
        self.codes.append(code)
        if self.error:
            raise self.error
        return self.token


class FakePublisher:
    def __init__(self, video_id="abc123", error=None):
        self.video_id = video_id
        self.error = error
        self.calls = []

    def publish(self, token, video_path, body):
        self.calls.append((token, video_path, body))
        if self.error:
            raise self.error
        return self.video_id


@pytest.fixture
def final_video(config):
    path = config.output_dir / "final_1700000000000.mp4"
    path.write_bytes(b"mp4")
    return path


def make_coordinator(config, storage, token=None, publisher=None, oauth=None):
    return UploadCoordinator(
        config,
        storage,
        credential_store=MemoryCredentialStore(token),
        oauth=oauth or FakeOAuth(),
        publisher=publisher or FakePublisher(),
    )


def test_no_credential_requires_auth(config, storage, final_video):
    publisher = FakePublisher()
    coordinator = make_coordinator(config, storage, publisher=publisher)

    with pytest.raises(AuthRequired) as exc_info:
        coordinator.upload("/output/final_1700000000000.mp4", "Title")

    assert exc_info.value.auth_url == AUTH_URL
    assert publisher.calls == []
    assert coordinator.last_attempt.state is UploadState.AUTH_REQUIRED
    assert coordinator.auth_state is AuthState.NOT_AUTHENTICATED


def test_auth_checked_before_file(config, storage):
    """Without a credential the missing file is not even looked at."""
    with pytest.raises(AuthRequired):
        make_coordinator(config, storage).upload("/output/final_missing.mp4", "Title")


def test_missing_video_is_not_found(config, storage):
    publisher = FakePublisher()
    coordinator = make_coordinator(config, storage, token=TOKEN, publisher=publisher)

    with pytest.raises(NotFoundError):
        coordinator.upload("/output/final_missing.mp4", "Title")

    assert publisher.calls == []
    assert coordinator.last_attempt.state is UploadState.FAILED


def test_upload_success(config, storage, final_video):
    publisher = FakePublisher(video_id="xyz789")
    coordinator = make_coordinator(config, storage, token=TOKEN, publisher=publisher)

    result = coordinator.upload(
        "http://localhost:3001/output/final_1700000000000.mp4",
        "Discipline #Shorts",
        "Follow for more #Shorts",
        ["#motivation", "#shorts"],
    )

    assert result.video_id == "xyz789"
    assert result.video_url == "https://youtube.com/shorts/xyz789"
    assert coordinator.last_attempt.state is UploadState.SUCCEEDED

    token, video_path, body = publisher.calls[0]
    assert token == TOKEN
    assert video_path == final_video
    assert body["snippet"] == {
        "title": "Discipline #Shorts",
        "description": "Follow for more #Shorts",
        "tags": ["#motivation", "#shorts"],
        "categoryId": "22",
    }
    assert body["status"]["privacyStatus"] == "private"


def test_title_truncated_to_cap(config, storage, final_video):
    publisher = FakePublisher()
    title = "x" * 99 + "yz" + "overflow"

    make_coordinator(config, storage, token=TOKEN, publisher=publisher).upload(
        final_video.name, title
    )

    sent = publisher.calls[0][2]["snippet"]["title"]
    assert len(sent) == config.TITLE_MAX_LENGTH
    assert sent == title[:100]


def test_short_title_untouched(config, storage):
    body = make_coordinator(config, storage).build_request_body("Short", tags=None)
    assert body["snippet"]["title"] == "Short"
    assert body["snippet"]["tags"] == []


def test_publish_error_surfaces(config, storage, final_video):
    error = PublishError("Failed to upload to YouTube", details="quotaExceeded")
    coordinator = make_coordinator(
        config, storage, token=TOKEN, publisher=FakePublisher(error=error)
    )

    with pytest.raises(PublishError) as exc_info:
        coordinator.upload(final_video.name, "Title")

    assert exc_info.value.details == "quotaExceeded"
    assert coordinator.last_attempt.state is UploadState.FAILED


@pytest.mark.parametrize("video_ref,title", [(None, "Title"), ("final_1.mp4", ""), ("", None)])
def test_upload_requires_video_and_title(config, storage, video_ref, title):
    with pytest.raises(ValidationError):
        make_coordinator(config, storage, token=TOKEN).upload(video_ref, title)


def test_authorization_then_upload(config, storage, final_video):
    """The failed attempt is not retried; the next call goes through."""
    oauth = FakeOAuth()
    publisher = FakePublisher()
    coordinator = make_coordinator(config, storage, oauth=oauth, publisher=publisher)

    with pytest.raises(AuthRequired):
        coordinator.upload(final_video.name, "Title")

    message = coordinator.complete_authorization("  4/0Abc  ")
    assert "successful" in message
    assert oauth.codes == ["4/0Abc"]
    assert coordinator.auth_state is AuthState.AUTHENTICATED
    assert publisher.calls == []

    result = coordinator.upload(final_video.name, "Title")
    assert result.video_id == "abc123"
    assert len(publisher.calls) == 1


def test_empty_authorization_code(config, storage):
    oauth = FakeOAuth()
    with pytest.raises(ValidationError):
        make_coordinator(config, storage, oauth=oauth).complete_authorization(" ")
    assert oauth.codes == []


def test_failed_exchange_stores_nothing(config, storage):
    coordinator = make_coordinator(
        config, storage, oauth=FakeOAuth(error=AuthExchangeError("invalid_grant"))
    )

    with pytest.raises(AuthExchangeError):
        coordinator.complete_authorization("bad-code")
    assert coordinator.credential_store.load() is None


def test_file_credential_store(tmp_path):
    store = FileCredentialStore(tmp_path / "nested" / "tokens.json")
    assert store.load() is None

    store.save(TOKEN)
    assert json.loads((tmp_path / "nested" / "tokens.json").read_text()) == TOKEN
    assert FileCredentialStore(tmp_path / "nested" / "tokens.json").load() == TOKEN


def test_google_oauth_requires_client_secrets(tmp_path):
    oauth = GoogleOAuth(tmp_path / "client_secret.json", "http://localhost:3000")

    with pytest.raises(ConfigError, match="client_secret.json"):
        oauth.authorization_url()


def test_google_oauth_authorization_url(tmp_path):
    secrets = tmp_path / "client_secret.json"
    secrets.write_text(json.dumps({
        "installed": {
            "client_id": "my-client.apps.googleusercontent.com",
            "client_secret": "s3cret",
            "auth_uri": "https://accounts.google.com/o/oauth2/auth",
            "token_uri": "https://oauth2.googleapis.com/token",
            "redirect_uris": ["http://localhost"],
        }
    }))

    url = GoogleOAuth(secrets, "http://localhost:3000").authorization_url()

    assert url.startswith("https://accounts.google.com/o/oauth2/auth?")
    assert "client_id=my-client.apps.googleusercontent.com" in url
    assert "access_type=offline" in url
    assert "youtube.upload" in url
    assert "redirect_uri=http%3A%2F%2Flocalhost%3A3000" in url
