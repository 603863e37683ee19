"""Token lookup through an authenticated ``gh`` CLI session."""

from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass

from fleetsync.auth.base import ResolvedToken, TokenResolver
from fleetsync.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GhCliTokenResolver(TokenResolver):
    mode = "gh-cli"
    hostname: str = "github.com"

    async def resolve(self) -> ResolvedToken:
        gh = shutil.which("gh")
        if gh is None:
            raise AuthenticationError("gh CLI not found on PATH; install it or choose another --auth mode")

        logger.debug("Reading token from %s for %s", gh, self.hostname)
        try:
            process = await asyncio.create_subprocess_exec(
                gh,
                "auth",
                "token",
                "--hostname",
                self.hostname,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise AuthenticationError(f"Failed to run {gh}: {exc}") from exc

        stdout, stderr = await process.communicate()
        value = stdout.decode(errors="replace").strip()
        if process.returncode != 0 or not value:
            details = stderr.decode(errors="replace").strip() or "no token printed"
            raise AuthenticationError(f"gh has no usable session for {self.hostname}: {details}")
        return ResolvedToken(value=value, source=self.mode)
