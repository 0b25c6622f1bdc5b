"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

from common.types import TargetFramework

COMMANDS = ["upload", "convert", "status", "abort", "set", "config", "clear", "exit", "help"]

CONVERT_FLAGS = [
    "--framework",
    "--no-responsive",
    "--no-semantic",
    "--no-accessibility",
    "--no-validate",
    "--threshold",
    "--output",
]
UPLOAD_FLAGS = ["--chunk-kib", "--gzip"]

FRAMEWORK_CHOICES = tuple(f.value for f in TargetFramework)

STYLE = Style.from_dict(
    {
        "prompt": "#31A8FF bold",
        "command": "#0088ff bold",
    }
)

PS_BLUE = "\033[38;2;49;168;255m"
GREEN = "\033[32m"
YELLOW = "\033[33m"
RESET = "\033[0m"

LOGO = f"""{PS_BLUE}
 ██████╗ ███████╗██████╗     ██████╗      ██╗  ██╗████████╗███╗   ███╗██╗
 ██╔══██╗██╔════╝██╔══██╗    ╚════██╗     ██║  ██║╚══██╔══╝████╗ ████║██║
 ██████╔╝███████╗██║  ██║     █████╔╝     ███████║   ██║   ██╔████╔██║██║
 ██╔═══╝ ╚════██║██║  ██║    ██╔═══╝      ██╔══██║   ██║   ██║╚██╔╝██║██║
 ██║     ███████║██████╔╝    ███████╗     ██║  ██║   ██║   ██║ ╚═╝ ██║███████╗
 ╚═╝     ╚══════╝╚═════╝     ╚══════╝     ╚═╝  ╚═╝   ╚═╝   ╚═╝     ╚═╝╚══════╝
{RESET}"""

WELCOME_TITLE = "PSD Converter CLI - Photoshop to HTML/CSS"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "psd> "

HELP_TEXT = """Available commands:
  upload <file.psd> [--chunk-kib N] [--gzip]
                                      Chunk-upload a PSD and show the parsed summary
  convert <file.psd> [options]        Parse, convert, validate and write preview files
      --framework vanilla|react|vue|angular
      --no-responsive  --no-semantic  --no-accessibility
      --no-validate                   Skip the visual comparison step
      --threshold T                   Similarity needed to pass validation (0-1)
      --output DIR                    Where .html/.css/-preview.html are written
  status <upload-id>                  Show an upload session's progress
  abort [upload-id]                   Discard an upload session (default: last one)
  set <key> <value>                   Change a setting (e.g. set api_port 9000)
  config                              Show current settings
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

Examples:
  upload designs/landing.psd --chunk-kib 512
  convert designs/landing.psd --framework react --threshold 0.9
  convert mockup.psd --no-validate --output build/
  set target_framework vue"""

SUPPORTED_FILE_EXTENSIONS = (".psd", ".psb")
