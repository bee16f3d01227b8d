import pytest
from unittest.mock import MagicMock, patch
from botocore.exceptions import NoCredentialsError

from conftest import client_error
from secretops.aws_session import AWSSessionManager, TokenRetrievalError


@pytest.fixture
def mock_session():
    with patch('secretops.aws_session.boto3.Session') as session_class:
        yield session_class


def test_clients_use_configured_timeout(mock_session):
    manager = AWSSessionManager(profile="dev", region="us-west-2", timeout=12)

    manager.get_client('secretsmanager')

    mock_session.assert_called_once_with(profile_name="dev", region_name="us-west-2")
    args, kwargs = mock_session.return_value.client.call_args
    assert args == ('secretsmanager',)
    assert kwargs["region_name"] == "us-west-2"
    assert kwargs["config"].connect_timeout == 12
    assert kwargs["config"].read_timeout == 12


def test_empty_profile_uses_default_chain(mock_session):
    AWSSessionManager(profile="", region="")

    mock_session.assert_called_once_with(profile_name=None, region_name=None)


def test_verify_credentials_returns_identity(mock_session, script_logger):
    sts = mock_session.return_value.client.return_value
    sts.get_caller_identity.return_value = {"Account": "123456789012", "Arn": "arn:aws:iam::123456789012:user/alice"}
    manager = AWSSessionManager()

    assert manager.verify_credentials()["Account"] == "123456789012"
    assert manager.get_account_id() == "123456789012"
    sts.get_caller_identity.assert_called_once()


def test_verify_without_credentials(mock_session, script_logger):
    mock_session.return_value.client.return_value.get_caller_identity.side_effect = NoCredentialsError()

    with pytest.raises(TokenRetrievalError):
        AWSSessionManager().verify_credentials()


def test_expired_iam_credentials_are_not_refreshed(mock_session, script_logger):
    mock_session.return_value.client.return_value.get_caller_identity.side_effect = client_error("ExpiredToken")
    manager = AWSSessionManager(profile="iam-user")

    with patch.object(manager, '_is_sso_profile', return_value=False), \
            patch.object(manager, '_refresh_sso_login') as refresh:
        with pytest.raises(TokenRetrievalError):
            manager.verify_credentials()

    refresh.assert_not_called()


def test_expired_sso_token_triggers_login(mock_session, script_logger):
    sts = MagicMock()
    sts.get_caller_identity.side_effect = [client_error("ExpiredToken"), {"Account": "1", "Arn": "arn"}]
    mock_session.return_value.client.return_value = sts
    manager = AWSSessionManager(profile="sso-dev")

    with patch.object(manager, '_is_sso_profile', return_value=True), \
            patch.object(manager, '_refresh_sso_login') as refresh:
        identity = manager.verify_credentials()

    assert identity["Account"] == "1"
    refresh.assert_called_once()


def test_other_client_errors_propagate(mock_session, script_logger):
    mock_session.return_value.client.return_value.get_caller_identity.side_effect = client_error("AccessDenied")

    with pytest.raises(Exception) as exc_info:
        AWSSessionManager(profile="dev").verify_credentials()

    assert "AccessDenied" in str(exc_info.value)
