# src/browser_harness/core/platform.py
"""
Host Platform Detection

Classifies the host operating system and processor architecture once per
run. Every OS-specific decision in the harness (driver file names, search
paths, launch arguments, runtime candidates) keys off PlatformInfo.
"""

import os
import platform as _platform
import sys
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import Dict, Optional


class OSFamily(str, Enum):
    """Operating system families the harness distinguishes."""

    WINDOWS = "windows"
    LINUX = "linux"
    MAC = "mac"
    OTHER = "other"


@dataclass(frozen=True)
class PlatformInfo:
    """
    Immutable description of the host platform.

    Attributes:
        os_family: Classified OS family
        is_arm: True on ARM processors (aarch64, arm64, armv7l, ...)
        os_name: Raw OS name as reported by the host
        arch: Raw architecture as reported by the host
    """

    os_family: OSFamily
    is_arm: bool
    os_name: str = ""
    arch: str = ""

    @classmethod
    def detect(cls, os_name: Optional[str] = None, arch: Optional[str] = None) -> "PlatformInfo":
        """
        Classify the host, or the given OS name and architecture strings.

        Args:
            os_name: OS name to classify (defaults to platform.system())
            arch: Architecture to classify (defaults to platform.machine())

        Returns:
            PlatformInfo: Classified platform
        """
        raw_os = _platform.system() if os_name is None else os_name
        raw_arch = _platform.machine() if arch is None else arch

        os_lower = raw_os.lower()
        arch_lower = raw_arch.lower()

        if "windows" in os_lower or "win32" in os_lower or "cygwin" in os_lower:
            family = OSFamily.WINDOWS
        elif "mac" in os_lower or "darwin" in os_lower:
            family = OSFamily.MAC
        elif "linux" in os_lower:
            family = OSFamily.LINUX
        else:
            family = OSFamily.OTHER

        is_arm = "aarch64" in arch_lower or "arm" in arch_lower

        return cls(os_family=family, is_arm=is_arm, os_name=raw_os, arch=raw_arch)

    @property
    def is_windows(self) -> bool:
        return self.os_family == OSFamily.WINDOWS

    @property
    def is_mac(self) -> bool:
        return self.os_family == OSFamily.MAC

    @property
    def is_linux_like(self) -> bool:
        """Linux and unrecognized systems share the Linux path tables."""
        return self.os_family in (OSFamily.LINUX, OSFamily.OTHER)

    @property
    def executable_suffix(self) -> str:
        return ".exe" if self.is_windows else ""

    def describe(self) -> Dict[str, str]:
        """Environment summary for the startup log line."""
        return {
            "os": f"{self.os_name} ({self.os_family.value})",
            "architecture": "ARM64" if self.is_arm else "x86/x64",
            "raw_architecture": self.arch,
            "python_version": sys.version.split()[0],
            "working_directory": os.getcwd(),
        }


@lru_cache(maxsize=1)
def current_platform() -> PlatformInfo:
    """Get the platform of the running host, detected once per process."""
    return PlatformInfo.detect()
