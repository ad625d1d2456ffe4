"""Process-level runtime used by the build executors."""

from minibuild.runtime.process import ProcessRunner, decode_returncode
from minibuild.runtime.protocols import CommandRunner

__all__ = ["CommandRunner", "ProcessRunner", "decode_returncode"]
