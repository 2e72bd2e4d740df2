# arch_optimizer/detect.py
"""
Best-effort host capability detection.

Every axis follows the same pattern: run an unprivileged query command,
optionally keep only the relevant lines, then classify the text with an
ordered list of regex rules into a closed enum. The first matching rule
wins, and no match (or any failure) yields the axis' unknown member.
"""
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from arch_optimizer.utils.exceptions import ShellCommandError
from arch_optimizer.utils.executor import Executor


class GpuVendor(str, Enum):
    NVIDIA = "nvidia"
    AMD = "amd"
    INTEL = "intel"
    UNKNOWN = "unknown"


class AudioServer(str, Enum):
    PIPEWIRE = "pipewire"
    PULSEAUDIO = "pulseaudio"
    UNKNOWN = "unknown"


class Confidence(str, Enum):
    DETECTED = "detected"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class HostCapability:
    category: Enum
    confidence: Confidence
    evidence: str = ""

    @property
    def detected(self) -> bool:
        return self.confidence is Confidence.DETECTED


@dataclass(frozen=True)
class ClassificationRule:
    pattern: "re.Pattern[str]"
    category: Enum


def rule(regex: str, category: Enum) -> ClassificationRule:
    return ClassificationRule(re.compile(regex, re.IGNORECASE), category)


# Discrete vendors first so hybrid laptops resolve to the dedicated card.
GPU_RULES = (
    rule(r"\bnvidia\b", GpuVendor.NVIDIA),
    rule(r"\b(amd|ati|radeon|advanced micro devices)\b", GpuVendor.AMD),
    rule(r"\bintel\b", GpuVendor.INTEL),
)
GPU_LINE_FILTER = re.compile(r"VGA compatible controller|3D controller|Display controller", re.IGNORECASE)

# pipewire-pulse reports "PulseAudio (on PipeWire x.y.z)"
AUDIO_RULES = (
    rule(r"pipewire", AudioServer.PIPEWIRE),
    rule(r"pulseaudio", AudioServer.PULSEAUDIO),
)
AUDIO_LINE_FILTER = re.compile(r"^\s*Server Name:", re.IGNORECASE)


def classify(text: str, rules: Sequence[ClassificationRule], unknown: Enum) -> HostCapability:
    """Maps raw host-enumeration text to a capability. Never raises."""
    for candidate in rules:
        match = candidate.pattern.search(text or "")
        if match:
            line = next((ln for ln in text.splitlines() if candidate.pattern.search(ln)), match.group(0))
            return HostCapability(candidate.category, Confidence.DETECTED, line.strip())
    return HostCapability(unknown, Confidence.UNKNOWN)


class CapabilityDetector:
    """Classifies one capability axis of the running host."""

    def __init__(self,
                 executor: Executor,
                 query: Sequence[str],
                 rules: Sequence[ClassificationRule],
                 unknown: Enum,
                 line_filter: Optional["re.Pattern[str]"] = None):
        self.executor = executor
        self.query = list(query)
        self.rules = tuple(rules)
        self.unknown = unknown
        self.line_filter = line_filter

    def enumerate(self) -> str:
        """Returns the raw query output, or an empty string when the query is unavailable."""
        try:
            exit_code, stdout, stderr = self.executor.query(self.query)
        except ShellCommandError as e:
            self.executor.logger.debug(f"Capability query '{' '.join(self.query)}' unavailable: {e.message}")
            return ""
        except Exception as e:
            self.executor.logger.warning(f"Capability query '{' '.join(self.query)}' failed unexpectedly: {e}")
            return ""
        if exit_code != 0:
            self.executor.logger.debug(f"Capability query '{' '.join(self.query)}' exited {exit_code}: {stderr.strip()}")
            return ""
        return stdout

    def detect(self) -> HostCapability:
        text = self.enumerate()
        if self.line_filter is not None:
            text = "\n".join(ln for ln in text.splitlines() if self.line_filter.search(ln))
        capability = classify(text, self.rules, self.unknown)
        self.executor.logger.debug(f"Detected {capability.category.value} ({capability.confidence.value}) "
                                   f"from '{' '.join(self.query)}'")
        return capability


def gpu_detector(executor: Executor) -> CapabilityDetector:
    return CapabilityDetector(executor, ["lspci", "-nn"], GPU_RULES, GpuVendor.UNKNOWN, GPU_LINE_FILTER)


def audio_detector(executor: Executor) -> CapabilityDetector:
    return CapabilityDetector(executor, ["pactl", "info"], AUDIO_RULES, AudioServer.UNKNOWN, AUDIO_LINE_FILTER)
