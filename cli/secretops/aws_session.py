#!/usr/bin/env python3

VERSION = "v0.1.0/2026-10-19"

"""
AWS Session Manager for the secrets manager cli using boto3.
Detects expired credentials and (if SSO) invokes the sso login.
Every client is built with the configured connect/read timeout.

Usage:
from secretops.aws_session import AWSSessionManager

session_manager = AWSSessionManager(profile="my-profile", region="us-east-1", timeout=30)
sm_client = session_manager.get_client('secretsmanager')
ssm_client = session_manager.get_client('ssm')
"""

import configparser
import os
import subprocess
import time
from typing import Any, Dict, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from secretops.logger import ConsoleAndLog, Log

EXPIRED_TOKEN_MARKERS = ("ExpiredToken", "InvalidClientTokenId", "Token has expired")


class TokenRetrievalError(Exception):
    """Custom exception for AWS token retrieval failures"""
    pass


class AWSSessionManager:

    def __init__(self, profile: Optional[str] = None, region: Optional[str] = None,
                 no_browser: Optional[bool] = False, timeout: Optional[float] = None,
                 max_sso_attempts: int = 3) -> None:
        self.profile = profile or None
        self.region = region or None
        self.no_browser = no_browser
        self.timeout = timeout
        self.max_sso_attempts = max_sso_attempts
        self.session = boto3.Session(profile_name=self.profile, region_name=self.region)
        self._identity = None

    def _client_config(self) -> Config:
        if self.timeout:
            return Config(connect_timeout=self.timeout, read_timeout=self.timeout)
        return Config()

    def get_session(self) -> boto3.Session:
        """Get the current boto3 session"""
        return self.session

    def get_client(self, service_name: str, region: Optional[str] = None) -> Any:
        """Get a boto3 client for the specified service"""
        return self.session.client(service_name, region_name=region or self.region,
                                   config=self._client_config())

    def get_region(self) -> Optional[str]:
        return self.region or self.session.region_name

    def verify_credentials(self) -> Dict[str, str]:
        """Confirm the session has working credentials, refreshing SSO if needed

        Returns:
            Dict[str, str]: The STS caller identity (Account, Arn, UserId)

        Raises:
            TokenRetrievalError: Credentials are missing or could not be refreshed
        """
        attempt = 0
        while True:
            attempt += 1
            try:
                self._identity = self.get_client('sts').get_caller_identity()
                Log.info(f"Using AWS identity {self._identity.get('Arn')}")
                return self._identity
            except NoCredentialsError:
                raise TokenRetrievalError(
                    "AWS credentials are not configured. Run 'aws configure' or pass --profile."
                )
            except (ClientError, BotoCoreError) as e:
                if not any(marker in str(e) for marker in EXPIRED_TOKEN_MARKERS):
                    raise
                if not self._is_sso_profile():
                    raise TokenRetrievalError(
                        "Credentials have expired. For IAM users, please update your credentials "
                        "using 'aws configure' or by setting environment variables."
                    )
                if attempt > self.max_sso_attempts:
                    ConsoleAndLog.error("Failed to refresh credentials after maximum retries")
                    raise TokenRetrievalError(f"SSO login did not produce valid credentials for {self.profile}")

                ConsoleAndLog.info("Token expired. Initiating SSO login...")
                self._refresh_sso_login()
                self.session = boto3.Session(profile_name=self.profile, region_name=self.region)

    def get_account_id(self) -> str:
        """Get the current account ID"""
        identity = self._identity or self.verify_credentials()
        return identity.get('Account')

    def _is_sso_profile(self) -> bool:
        """Check if the current profile is configured for SSO"""
        config_path = os.path.expanduser("~/.aws/config")
        if not self.profile or not os.path.exists(config_path):
            return False

        config = configparser.ConfigParser()
        try:
            config.read(config_path)
        except configparser.Error as e:
            ConsoleAndLog.warning("Error checking SSO profile configuration", e)
            return False

        profile_section = f"profile {self.profile}" if self.profile != "default" else "default"
        if profile_section not in config:
            return False

        sso_keys = ['sso_start_url', 'sso_region', 'sso_account_id', 'sso_role_name', 'sso_session']
        return any(key in config[profile_section] for key in sso_keys)

    def _refresh_sso_login(self) -> None:
        """Execute AWS SSO login command for specific profile with browser fallback"""
        if 'WSL' in os.uname().release:
            self.no_browser = True
            ConsoleAndLog.info("WSL detected. Running in no-browser mode.")
        elif not self._can_open_browser():
            ConsoleAndLog.info("Browser not detected. You may need to run in no-browser mode.")

        cmd = ["aws", "sso", "login", "--profile", self.profile]
        if self.no_browser:
            cmd.append("--no-browser")
            ConsoleAndLog.info("You will need to manually copy and paste the URL.")

        try:
            # Let the AWS CLI handle the interactive parts
            subprocess.run(cmd, check=True)
        except (subprocess.CalledProcessError, FileNotFoundError) as e:
            error_msg = (
                f"SSO login failed for profile {self.profile}.\n"
                "Common issues:\n"
                "1. AWS CLI not installed or not on PATH\n"
                "2. No internet connection\n"
                "3. Invalid SSO configuration\n"
                "Try using --no-browser if you're in a terminal without display access."
            )
            ConsoleAndLog.error(error_msg, e)
            raise TokenRetrievalError(error_msg)

        # Give the CLI a moment to write the refreshed token cache
        time.sleep(2)

    def _can_open_browser(self) -> bool:
        if os.name == 'posix':
            return bool(os.environ.get('DISPLAY'))
        return os.name == 'nt'
