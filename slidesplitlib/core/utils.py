#!/usr/bin/env python3

import os
import shlex
import shutil
import subprocess
import sys

#============================================

VERBOSITY_LEVELS = ('quiet', 'normal', 'debug')
_VERBOSITY = 'normal'

#============================================

def set_verbosity(level: str) -> None:
	global _VERBOSITY
	if level not in VERBOSITY_LEVELS:
		raise RuntimeError(f"verbosity must be one of: {', '.join(VERBOSITY_LEVELS)}")
	_VERBOSITY = level
	return

#============================================

def get_verbosity() -> str:
	return _VERBOSITY

#============================================

def is_quiet_mode() -> bool:
	return _VERBOSITY == 'quiet'

#============================================

def is_debug_mode() -> bool:
	return _VERBOSITY == 'debug'

#============================================

def info(message: str) -> None:
	if not is_quiet_mode():
		print(message)
	return

#============================================

def debug(message: str) -> None:
	if is_debug_mode():
		print(f"DEBUG: {message}")
	return

#============================================

def warning(message: str) -> None:
	sys.stderr.write(f"WARNING: {message}\n")
	return

#============================================

def ensure_file_exists(filepath: str) -> None:
	if not os.path.isfile(filepath):
		raise RuntimeError(f"file not found: {filepath}")
	return

#============================================

def check_dependency(cmd_name: str) -> str:
	"""
	Ensure a required external command exists.

	Args:
		cmd_name: Command name or path to locate.

	Returns:
		str: Resolved executable path.
	"""
	found = shutil.which(cmd_name)
	if found is None:
		raise RuntimeError(f"missing dependency: {cmd_name}")
	return found

#============================================

def run_process(cmd: list, cwd: str | None = None,
	capture_output: bool = True) -> subprocess.CompletedProcess:
	"""
	Run a subprocess command.

	Args:
		cmd: Command list to execute.
		cwd: Working directory.
		capture_output: Capture stdout and stderr when True.

	Returns:
		subprocess.CompletedProcess: Completed process.
	"""
	showcmd = shlex.join(cmd)
	if not is_quiet_mode():
		print(f"CMD: '{showcmd}'")
	proc = subprocess.run(cmd, cwd=cwd, capture_output=capture_output, text=True)
	if proc.returncode != 0:
		stderr_text = ""
		if proc.stderr is not None:
			stderr_text = proc.stderr.strip()
		raise RuntimeError(
			f"command failed (exit code {proc.returncode}): {showcmd}\n{stderr_text}"
		)
	return proc

#============================================

def plural(count: int, word: str) -> str:
	if count == 1:
		return f"{count} {word}"
	return f"{count} {word}s"
