"""Subprocess execution for plugins and helper commands."""

import subprocess
import sys
import threading
from typing import IO, List, Optional, Sequence

from ..utils.logging import logger


class CommandResult:
    """Represents the result of a command execution."""
    
    def __init__(self, 
                 argv: Sequence[str],
                 exit_code: int,
                 stdout: str = "",
                 stderr: str = "",
                 combined: Optional[str] = None,
                 error_message: str = ""):
        self.argv = list(argv)
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        self.combined = combined
        self.error_message = error_message
    
    @property
    def command(self) -> str:
        """The argument vector joined for display."""
        return subprocess.list2cmdline(self.argv)
    
    @property
    def output(self) -> str:
        """Combined stdout and stderr output, in arrival order when known."""
        if self.combined is not None:
            return self.combined
        combined = []
        if self.stdout.strip():
            combined.append(self.stdout.strip())
        if self.stderr.strip():
            combined.append(self.stderr.strip())
        return "\n".join(combined) if combined else ""
    
    @property
    def success(self) -> bool:
        """Whether the command executed successfully."""
        return self.exit_code == 0 and not self.error_message
    
    def __str__(self) -> str:
        return f"Exit Code: {self.exit_code}. Output:\n{self.output if self.output else '(no output)'}"


class CommandExecutor:
    """Runs argument vectors without a shell.

    ``run`` mirrors the child's stdout/stderr to the terminal while keeping a
    copy; standard input is inherited so interactive plugins can still prompt.
    ``capture`` is the quiet variant used for helper commands fed from stdin.
    """
    
    def __init__(self, default_timeout: Optional[int] = None):
        """Initialize command executor.
        
        Args:
            default_timeout: Timeout for ``capture`` in seconds (None waits forever)
        """
        self.default_timeout = default_timeout
    
    def run(self, argv: Sequence[str]) -> CommandResult:
        """Run ``argv`` to completion, teeing its output.
        
        Args:
            argv: Program and arguments
            
        Returns:
            CommandResult with stdout, stderr and the interleaved combined output

        Raises:
            OSError: The program could not be started
        """
        logger.command(f"Running: {subprocess.list2cmdline(list(argv))}")

        process = subprocess.Popen(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )

        combined: List[str] = []
        lock = threading.Lock()
        stdout_parts: List[str] = []
        stderr_parts: List[str] = []

        def pump(source: IO[str], mirror: IO[str], parts: List[str]) -> None:
            for line in iter(source.readline, ""):
                mirror.write(line)
                mirror.flush()
                parts.append(line)
                with lock:
                    combined.append(line)
            source.close()

        threads = [
            threading.Thread(target=pump, args=(process.stdout, sys.stdout, stdout_parts), daemon=True),
            threading.Thread(target=pump, args=(process.stderr, sys.stderr, stderr_parts), daemon=True),
        ]
        for thread in threads:
            thread.start()
        exit_code = process.wait()
        for thread in threads:
            thread.join()

        result = CommandResult(
            argv=argv,
            exit_code=exit_code,
            stdout="".join(stdout_parts),
            stderr="".join(stderr_parts),
            combined="".join(combined),
        )
        logger.debug(f"Command completed with exit code {result.exit_code}")
        return result
    
    def capture(self, argv: Sequence[str], input_text: Optional[str] = None,
                timeout: Optional[int] = None) -> CommandResult:
        """Run ``argv`` silently, optionally feeding ``input_text`` on stdin.
        
        Args:
            argv: Program and arguments
            input_text: Text written to the child's standard input
            timeout: Timeout in seconds (uses default if None)
            
        Returns:
            CommandResult; a timeout is reported through ``error_message``
        """
        if timeout is None:
            timeout = self.default_timeout
        
        logger.debug(f"Capturing: {subprocess.list2cmdline(list(argv))}")
        
        try:
            process = subprocess.run(
                list(argv),
                input=input_text,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired:
            error_msg = f"Command timed out after {timeout} seconds"
            logger.warning(error_msg)
            return CommandResult(argv=argv, exit_code=124, error_message=error_msg)
        
        return CommandResult(
            argv=argv,
            exit_code=process.returncode,
            stdout=process.stdout,
            stderr=process.stderr,
        )


def create_command_executor(timeout: Optional[int] = None) -> CommandExecutor:
    """Create a command executor with the specified default timeout."""
    return CommandExecutor(timeout)
