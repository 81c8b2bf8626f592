"""Refresh-token lifecycle (issue / verify / rotate / revoke)."""

from __future__ import annotations

from .dto import IssueResult, RotateResult, VerifyResult
from .manager import RefreshTokenManager

__all__ = ["RefreshTokenManager", "IssueResult", "VerifyResult", "RotateResult"]
