"""CLI entry point for bite."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Callable
from typing import Any

import fire
import paramiko

from bite.constants import (
    EXIT_CONFIG_ERROR,
    EXIT_ERROR,
    EXIT_INTERRUPTED,
    EXIT_SUCCESS,
)
from bite.core.exceptions import BiteError, ReadinessTimeoutError
from bite.logging import StreamFormatter, StreamRoutingFilter
from bite.providers import (
    ProviderAPIError,
    ProviderConnectionError,
    ProviderCredentialsError,
)
from bite.providers.aws.utils import get_aws_credentials_error_message
from bite.utils import log_and_print_error


def get_bite_base_class() -> type:
    """Get Bite base class on-demand to avoid circular imports.

    Returns
    -------
    type
        Bite base class
    """
    from bite.__main__ import Bite

    return Bite


class BiteCLI:
    """CLI wrapper that turns command results into process exit codes.

    Defined as a factory creating a subclass of Bite at runtime to avoid
    circular import issues.
    """

    _cached_class: type | None = None

    def __new__(cls, **kwargs: Any) -> Any:
        """Create BiteCLI instance with dynamic subclassing.

        Parameters
        ----------
        **kwargs : Any
            Dependency overrides passed through to Bite

        Returns
        -------
        Any
            Instance of dynamically created BiteCLI subclass
        """
        if cls._cached_class is None:
            Bite = get_bite_base_class()

            class BiteCLIImpl(Bite):
                """CLI wrapper implementation for Bite."""

                def run(
                    self,
                    name: str,
                    command: str | None = None,
                    boot: bool = False,
                    region: str | None = None,
                    verbose: bool = False,
                ) -> None:
                    """Connect to the instance with the given Name tag.

                    Parameters
                    ----------
                    name : str
                        Name tag of the instance
                    command : str | None
                        Command to run instead of an interactive shell;
                        its exit code becomes bite's exit code
                    boot : bool
                        Start the instance if it is stopped
                    region : str | None
                        Region override
                    verbose : bool
                        Enable debug logging
                    """
                    exit_code = super().run(
                        name=name,
                        command=command,
                        boot=boot,
                        region=region,
                        verbose=verbose,
                    )
                    sys.exit(exit_code if exit_code is not None else EXIT_SUCCESS)

            cls._cached_class = BiteCLIImpl

        return cls._cached_class(**kwargs)


def handle_bite_error(error: BiteError, debug_mode: bool) -> int:
    """Report a pipeline failure.

    Parameters
    ----------
    error : BiteError
        The failure raised by a pipeline stage
    debug_mode : bool
        Whether debug mode is enabled

    Returns
    -------
    int
        Process exit code

    Raises
    ------
    BiteError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    log_and_print_error("%s", error)

    if isinstance(error, ReadinessTimeoutError) and error.phase == "reachability":
        print("\nThis usually means:", file=sys.stderr)
        print("  - sshd has not finished starting", file=sys.stderr)
        print("  - Security group blocking port 22 from this host", file=sys.stderr)
        print("  - Address not routable from here (try address_type: public)", file=sys.stderr)

    return EXIT_ERROR


def handle_credentials_error(error: ProviderCredentialsError, debug_mode: bool) -> int:
    """Handle provider credentials error.

    Raises
    ------
    ProviderCredentialsError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    print(get_aws_credentials_error_message(), file=sys.stderr)
    return EXIT_ERROR


def handle_api_error(error: ProviderAPIError, debug_mode: bool) -> int:
    """Handle provider API error with context-specific messages.

    Parameters
    ----------
    error : ProviderAPIError
        The API error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Returns
    -------
    int
        Process exit code

    Raises
    ------
    ProviderAPIError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    error_code = error.error_code

    if error_code == "UnauthorizedOperation":
        print("Insufficient IAM permissions\n", file=sys.stderr)
        print("Your credentials need:", file=sys.stderr)
        print("  - ec2:DescribeInstances", file=sys.stderr)
        print("  - ec2:StartInstances (for --boot)", file=sys.stderr)
    elif error_code in ["ExpiredToken", "RequestExpired", "ExpiredTokenException"]:
        print("Cloud credentials have expired\n", file=sys.stderr)
        print("Fix it:", file=sys.stderr)
        print("  aws sso login           # If using AWS SSO", file=sys.stderr)
        print("  aws configure           # Re-configure credentials", file=sys.stderr)
    elif error_code == "IncorrectInstanceState":
        print(f"Instance cannot be started right now: {error}", file=sys.stderr)
    else:
        print(f"Cloud API error: {error}", file=sys.stderr)

    return EXIT_ERROR


def handle_connection_error(error: ProviderConnectionError, debug_mode: bool) -> int:
    """Handle an unreachable provider endpoint.

    Raises
    ------
    ProviderConnectionError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    print(f"Cannot reach the cloud API: {error}", file=sys.stderr)
    return EXIT_ERROR


def handle_value_error(error: ValueError, debug_mode: bool) -> int:
    """Handle settings validation error.

    Raises
    ------
    ValueError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    print(f"Configuration error: {error}", file=sys.stderr)
    return EXIT_CONFIG_ERROR


def handle_runtime_error(error: RuntimeError, debug_mode: bool) -> int:
    """Handle unexpected runtime error.

    Parameters
    ----------
    error : RuntimeError
        The runtime error that was raised
    debug_mode : bool
        Whether debug mode is enabled

    Returns
    -------
    int
        Process exit code

    Raises
    ------
    RuntimeError
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    log_and_print_error("%s", error)
    return EXIT_ERROR


def handle_ssh_error(error: Exception, debug_mode: bool) -> int:
    """Handle SSH session error.

    Raises
    ------
    OSError, paramiko.SSHException
        Re-raised if debug mode is enabled
    """
    if debug_mode:
        raise error

    print(f"SSH error: {error}", file=sys.stderr)
    return EXIT_ERROR


def configure_logging() -> None:
    """Route status messages to stderr and remote command output to stdout."""
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(StreamFormatter("%(message)s"))
    stdout_handler.addFilter(StreamRoutingFilter("stdout"))

    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(StreamFormatter("%(message)s"))
    stderr_handler.addFilter(StreamRoutingFilter("stderr"))

    logging.basicConfig(
        level=logging.INFO,
        handlers=[stdout_handler, stderr_handler],
    )


def main(cli_factory: Callable[[], Any] | None = None) -> int:
    """Entry point for Fire CLI with graceful error handling.

    Fire maps the public methods of Bite to subcommands (``connect``,
    ``run``, ``hosts``) and their parameters to flags.

    Parameters
    ----------
    cli_factory : Callable[[], Any] | None
        Builds the object handed to Fire, BiteCLI by default

    Returns
    -------
    int
        Process exit code
    """
    configure_logging()

    debug_mode = os.environ.get("BITE_DEBUG") == "1"

    try:
        fire.Fire((cli_factory or BiteCLI)())
    except BiteError as e:
        return handle_bite_error(e, debug_mode)
    except ProviderCredentialsError as e:
        return handle_credentials_error(e, debug_mode)
    except ProviderAPIError as e:
        return handle_api_error(e, debug_mode)
    except ProviderConnectionError as e:
        return handle_connection_error(e, debug_mode)
    except ValueError as e:
        return handle_value_error(e, debug_mode)
    except RuntimeError as e:
        return handle_runtime_error(e, debug_mode)
    except (OSError, paramiko.SSHException) as e:
        return handle_ssh_error(e, debug_mode)
    except KeyboardInterrupt:
        print("Interrupted", file=sys.stderr)
        return EXIT_INTERRUPTED

    return EXIT_SUCCESS
