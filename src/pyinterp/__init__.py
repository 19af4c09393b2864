"""Host-side bridge to a long-lived child Python interpreter.

The host starts an interpreter subprocess running a small command loop and
talks to it over stdin/stdout, one JSON object per line.

Structure:
- pyinterp/lib/: The bridge itself
  - interp.py: Interp handle (run, get, set, close) and new_interp()
  - process.py: Process supervision and configuration options
  - channel.py: Line-framed JSON channel over the child's pipes
  - commands.py: Command and response models
  - bootstrap.py: Command loop script injected into the child
  - errors.py: Error taxonomy

- pyinterp/config.py: Configuration via pydantic-settings
- pyinterp/cli/: Command line entry point
"""
