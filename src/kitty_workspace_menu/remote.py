# =============================================================================
# Remote Command Execution (ssh)
# =============================================================================

import subprocess

from loguru import logger

from .errors import Error, ErrorType, Result


class SshRemoteExec:
    """Run a shell command on a host alias from ~/.ssh/config and capture stdout."""

    def __init__(self, ssh_bin: str = "ssh"):
        self.ssh_bin = ssh_bin

    def run(self, host_alias: str, shell_command: str) -> Result[str]:
        logger.debug(
            "Running remote command",
            operation="remote_exec",
            status="started",
            host=host_alias
        )
        try:
            result = subprocess.run(
                [self.ssh_bin, host_alias, shell_command],
                capture_output=True,
                text=True,
                check=False
            )
        except OSError as e:
            return Result.err(Error(
                error_type=ErrorType.REMOTE_ERROR,
                message=f"Could not run ssh: {e}",
                context={"host": host_alias},
                original_exception=e
            ))

        if result.returncode != 0:
            logger.warning(
                "Remote command failed",
                operation="remote_exec",
                status="failed",
                host=host_alias,
                returncode=result.returncode,
                stderr=result.stderr.strip()[:200]
            )
            return Result.err(Error(
                error_type=ErrorType.REMOTE_ERROR,
                message=(
                    f"ssh {host_alias} exited {result.returncode}: "
                    f"{result.stderr.strip() or 'no error output'}"
                ),
                context={"host": host_alias, "returncode": result.returncode}
            ))

        logger.debug(
            "Remote command complete",
            operation="remote_exec",
            status="success",
            host=host_alias,
            metrics={"stdout_bytes": len(result.stdout)}
        )
        return Result.ok(result.stdout)
