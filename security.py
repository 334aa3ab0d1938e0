#!/usr/bin/env python3
"""Input validation and log sanitization for repo-tools."""

import os
import re
from typing import List, Optional


class SecurityValidator:
    """Security validation utilities for input sanitization and validation."""

    # Maximum lengths to prevent oversized inputs reaching the API
    MAX_REPO_REF_LENGTH = 200
    MAX_LABEL_NAME_LENGTH = 50
    MAX_LABEL_DESCRIPTION_LENGTH = 100
    MAX_URL_LENGTH = 2048
    MAX_USERNAME_LENGTH = 100
    MAX_PATH_LENGTH = 500

    # Allowed characters for various inputs
    SAFE_OWNER_PATTERN = re.compile(r"^[A-Za-z0-9](?:[A-Za-z0-9-]*[A-Za-z0-9])?$")
    SAFE_REPO_NAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
    SAFE_USERNAME_PATTERN = re.compile(r"^[A-Za-z0-9._-]+$")
    LABEL_COLOR_PATTERN = re.compile(r"^[0-9a-fA-F]{6}$")

    @classmethod
    def validate_repo_ref(cls, ref: str) -> str:
        """Validate an ``owner/name`` repository reference."""
        if not ref or not isinstance(ref, str):
            raise ValueError("Repository must be a non-empty string")

        if len(ref) > cls.MAX_REPO_REF_LENGTH:
            raise ValueError(
                f"Repository exceeds maximum length of {cls.MAX_REPO_REF_LENGTH}"
            )

        if "\x00" in ref or any(ord(c) < 32 for c in ref):
            raise ValueError("Repository contains null bytes or control characters")

        parts = ref.split("/")
        if len(parts) != 2:
            raise ValueError(f"Repository must be in owner/name form: {ref}")

        owner, name = parts
        if not cls.SAFE_OWNER_PATTERN.match(owner):
            raise ValueError(f"Repository owner contains invalid characters: {owner}")
        if name in (".", "..") or not cls.SAFE_REPO_NAME_PATTERN.match(name):
            raise ValueError(f"Repository name contains invalid characters: {name}")

        return ref

    @classmethod
    def validate_label_name(cls, name: str) -> str:
        """Validate a label name as accepted by the hosting API."""
        if not name or not isinstance(name, str) or not name.strip():
            raise ValueError("Label name must be a non-empty string")

        if len(name) > cls.MAX_LABEL_NAME_LENGTH:
            raise ValueError(
                f"Label name exceeds maximum length of {cls.MAX_LABEL_NAME_LENGTH}"
            )

        if "\x00" in name or any(ord(c) < 32 for c in name):
            raise ValueError("Label name contains null bytes or control characters")

        return name

    @classmethod
    def validate_label_color(cls, color: str) -> str:
        """Validate a 6-hex-digit label color (no leading '#')."""
        if not isinstance(color, str) or not cls.LABEL_COLOR_PATTERN.match(color):
            raise ValueError(f"Label color must be 6 hex digits: {color!r}")
        return color

    @classmethod
    def validate_label_description(cls, description: Optional[str]) -> Optional[str]:
        if description is None:
            return None
        if not isinstance(description, str):
            raise ValueError("Label description must be a string")
        if len(description) > cls.MAX_LABEL_DESCRIPTION_LENGTH:
            raise ValueError(
                "Label description exceeds maximum length of "
                f"{cls.MAX_LABEL_DESCRIPTION_LENGTH}"
            )
        return description

    @classmethod
    def validate_url(cls, url: str, allowed_schemes: Optional[List[str]] = None) -> str:
        """Validate URL for security."""
        if not url or not isinstance(url, str):
            raise ValueError("URL must be a non-empty string")

        if len(url) > cls.MAX_URL_LENGTH:
            raise ValueError(f"URL exceeds maximum length of {cls.MAX_URL_LENGTH}")

        if "\x00" in url or any(ord(c) < 32 for c in url):
            raise ValueError("URL contains null bytes or control characters")

        if not url.startswith(("http://", "https://")):
            raise ValueError("URL must use http or https scheme")

        if allowed_schemes:
            scheme = url.split("://")[0].lower()
            if scheme not in allowed_schemes:
                raise ValueError(
                    f"URL scheme '{scheme}' not in allowed schemes: {allowed_schemes}"
                )

        if "@" in url.split("://", 1)[1].split("/", 1)[0]:
            raise ValueError("URL must not embed credentials")

        return url.rstrip("/")

    @classmethod
    def validate_username(cls, username: str) -> str:
        """Validate username for security."""
        if not username or not isinstance(username, str):
            raise ValueError("Username must be a non-empty string")

        if len(username) > cls.MAX_USERNAME_LENGTH:
            raise ValueError(
                f"Username exceeds maximum length of {cls.MAX_USERNAME_LENGTH}"
            )

        if "\x00" in username or any(ord(c) < 32 for c in username):
            raise ValueError("Username contains null bytes or control characters")

        if not cls.SAFE_USERNAME_PATTERN.match(username):
            raise ValueError("Username contains invalid characters")

        return username

    @classmethod
    def validate_file_path(cls, path: str) -> str:
        """Validate file path for security."""
        if not path or not isinstance(path, str):
            raise ValueError("File path must be a non-empty string")

        if len(path) > cls.MAX_PATH_LENGTH:
            raise ValueError(
                f"File path exceeds maximum length of {cls.MAX_PATH_LENGTH}"
            )

        if "\x00" in path:
            raise ValueError("File path contains null bytes")

        return os.path.normpath(path)

    @classmethod
    def sanitize_for_logging(cls, message: str) -> str:
        """Sanitize message for safe logging by removing potential credentials."""
        if not message:
            return message

        # Patterns to redact
        patterns = [
            (r"https://[^:/@]+:[^@]+@", "https://[REDACTED]@"),  # URLs with credentials
            (r"(authorization[=:\s]+)(bearer|token)\s+[^\s,'\"]+", r"\1[REDACTED]"),
            (r"token\s*[=:]\s*[^\s]+", "token=[REDACTED]"),  # Token assignments
            (r"password\s*[=:]\s*[^\s]+", "password=[REDACTED]"),  # Password assignments
            (r"ghp_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub tokens
            (r"gho_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub OAuth tokens
            (r"ghu_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub user tokens
            (r"ghs_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub server tokens
            (r"ghr_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # GitHub refresh tokens
            (r"github_pat_[A-Za-z0-9_]+", "[GITHUB_TOKEN_REDACTED]"),  # Fine-grained
        ]

        sanitized = message
        for pattern, replacement in patterns:
            sanitized = re.sub(pattern, replacement, sanitized, flags=re.IGNORECASE)

        return sanitized
