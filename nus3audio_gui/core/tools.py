"""
External tool orchestration.

VGAudioCli (a .NET program) converts between WAV and the IDSP/LOPUS formats
used inside nus3audio containers. On systems other than Windows it runs
through a .NET runtime (mono, dotnet or wine).

vgmstream is optional. It decodes faster and is the only source of loop
point metadata.
"""

import json
import logging
import shutil
import subprocess
import sys
from pathlib import Path
from typing import Optional

from ..utils.formatting import human_readable_size

logger = logging.getLogger(__name__)

# Runtimes in order of preference, wine is the last resort
DOTNET_RUNTIMES = ("mono", "dotnet")
FALLBACK_RUNTIME = "wine"

TOOL_TIMEOUT_SECONDS = 300


class ToolError(RuntimeError):
    """An external tool could not be run or reported failure."""


def is_windows() -> bool:
    return sys.platform == "win32"


def default_runtime() -> str:
    """
    Runtime used to start VGAudioCli.

    Empty on Windows, otherwise the first runtime found on PATH.
    """
    if is_windows():
        return ""
    for runtime in DOTNET_RUNTIMES:
        if shutil.which(runtime):
            return runtime
    return FALLBACK_RUNTIME


def _describe_stream(label: str, data: Optional[bytes]) -> str:
    if data is None:
        return f"{label} is empty"
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError:
        return f"{label} couldn't be read"
    if not text:
        return f"{label} is empty"
    return f"{label} is:\n{text}"


def run_tool(name: str, command: list[str]) -> subprocess.CompletedProcess:
    """
    Run an external tool and check its exit status.

    Args:
        name: Tool name used in messages
        command: Full command line

    Returns:
        The completed process (stdout/stderr as bytes)

    Raises:
        ToolError: Tool could not be started, was killed or exited non-zero
    """
    logger.debug("Running %s", command)

    try:
        result = subprocess.run(
            command,
            capture_output=True,
            timeout=TOOL_TIMEOUT_SECONDS,
        )
    except (OSError, subprocess.SubprocessError) as e:
        raise ToolError(f"Error running {name}\n{e}") from e

    if result.returncode < 0:
        raise ToolError(f"Attempted running {name}, didn't get any exit code")

    if result.returncode != 0:
        raise ToolError(
            f"Attempted running {name}, found exit code {result.returncode}\n"
            f"{_describe_stream('stdout', result.stdout)}\n"
            f"{_describe_stream('stderr', result.stderr)}"
        )

    logger.debug(_describe_stream("stdout", result.stdout))
    logger.debug(_describe_stream("stderr", result.stderr))
    return result


class VGAudioCli:
    """Wrapper around the VGAudioCli executable."""

    name = "VGAudioCli"

    def __init__(self, path: str, runtime: str = ""):
        self.path = path
        self.runtime = runtime

    def build_command(
        self,
        src_file: Path,
        dest_file: Path,
        loop_points: Optional[tuple[int, int]] = None,
    ) -> list[str]:
        """Command line converting src_file to dest_file."""
        if not self.path:
            raise ToolError("VGAudioCli path is empty")

        command = [self.runtime, self.path] if self.runtime else [self.path]
        command += ["-c", str(src_file), str(dest_file)]

        if loop_points is not None:
            start, end = loop_points
            command += ["-l", f"{start}-{end}"]

        if Path(dest_file).suffix.lower() == ".lopus":
            # Constant bitrate with the header the game expects
            command += ["--cbr", "--opusheader", "namco"]

        return command

    def convert(
        self,
        src_file: Path,
        dest_file: Path,
        loop_points: Optional[tuple[int, int]] = None,
    ) -> bytes:
        """
        Convert src_file to dest_file and return the written file.

        The output format follows the extension of dest_file.
        """
        run_tool(self.name, self.build_command(src_file, dest_file, loop_points))

        try:
            data = Path(dest_file).read_bytes()
        except OSError as e:
            raise ToolError(f"Error reading destination file {dest_file}\n{e}") from e

        logger.debug("Got VGAudioCli output (output is %s)", human_readable_size(len(data)))
        return data


class Vgmstream:
    """Wrapper around the vgmstream command line decoder."""

    name = "vgmstream"

    def __init__(self, path: str):
        self.path = path

    def _check_path(self):
        if not self.path:
            raise ToolError("vgmstream path is empty")

    def decode(self, src_file: Path) -> bytes:
        """Decode src_file and return WAV bytes (written to stdout by -p)."""
        self._check_path()
        result = run_tool(self.name, [self.path, "-p", str(src_file)])
        logger.debug("Decoded with vgmstream (output is %s)", human_readable_size(len(result.stdout)))
        return result.stdout

    def metadata(self, src_file: Path) -> dict:
        """
        Stream information of src_file.

        -m prints metadata only without decoding, -I prints it as JSON.
        """
        self._check_path()
        result = run_tool(self.name, [self.path, "-mI", str(src_file)])

        try:
            text = result.stdout.decode("utf-8")
        except UnicodeDecodeError as e:
            raise ToolError(f"Error reading vgmstream output\n{e}") from e

        try:
            metadata = json.loads(text)
        except json.JSONDecodeError as e:
            raise ToolError(f"Error parsing vgmstream output\n{e}") from e

        if not isinstance(metadata, dict):
            raise ToolError("Error parsing vgmstream output\nExpected a JSON object")
        return metadata

    def loop_points(self, src_file: Path) -> Optional[tuple[int, int]]:
        """
        Loop points of src_file in samples.

        Returns None if vgmstream is unavailable or the file does not loop.
        """
        try:
            metadata = self.metadata(src_file)
        except ToolError as e:
            logger.debug("No loop points for %s: %s", src_file, e)
            return None
        return parse_loop_points(metadata)


def parse_loop_points(metadata: dict) -> Optional[tuple[int, int]]:
    """Extract (start, end) from vgmstream's loopingInfo, if valid."""
    loop_info = metadata.get("loopingInfo")
    if not isinstance(loop_info, dict):
        return None

    start = loop_info.get("start")
    end = loop_info.get("end")
    for value in (start, end):
        if not isinstance(value, int) or isinstance(value, bool) or value < 0:
            return None

    if end > start:
        return (start, end)
    return None


class Transcoder:
    """
    Chooses the external tool for each conversion.

    Decoding prefers vgmstream if configured to, encoding always
    uses VGAudioCli.
    """

    def __init__(self, settings):
        self.settings = settings

    @property
    def vgaudio_cli(self) -> VGAudioCli:
        return VGAudioCli(self.settings.vgaudio_cli_path, self.settings.vgaudio_cli_prepath)

    @property
    def vgmstream(self) -> Vgmstream:
        return Vgmstream(self.settings.vgmstream_path)

    def decode(self, src_file: Path) -> bytes:
        """Decode an IDSP/LOPUS file to WAV bytes."""
        src_file = Path(src_file)
        if self.settings.prefer_vgmstream_decode:
            if self.settings.vgmstream_path:
                return self.vgmstream.decode(src_file)
            return self.vgaudio_cli.convert(src_file, src_file.with_suffix(".wav"))

        if self.settings.vgaudio_cli_path:
            return self.vgaudio_cli.convert(src_file, src_file.with_suffix(".wav"))
        return self.vgmstream.decode(src_file)

    def encode(
        self,
        src_file: Path,
        dest_file: Path,
        loop_points: Optional[tuple[int, int]] = None,
    ) -> bytes:
        """Encode a WAV file to the format given by the extension of dest_file."""
        return self.vgaudio_cli.convert(src_file, dest_file, loop_points)

    def loop_points(self, src_file: Path) -> Optional[tuple[int, int]]:
        return self.vgmstream.loop_points(Path(src_file))
