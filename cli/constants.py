"""CLI constants and configuration."""

from prompt_toolkit.styles import Style

COMMANDS = [
    "ls", "tree", "upload", "download", "mv", "cp", "rm",
    "sync-up", "sync-down", "header", "clear", "exit", "help",
]

REMOTE_PATH_COMMANDS = ("ls", "tree", "download", "mv", "cp", "rm")

STYLE = Style.from_dict(
    {
        "prompt": "#5865F2 bold",
        "command": "#0088ff bold",
    }
)

BLURPLE = "\033[38;2;88;101;242m"
GREEN = "\033[32m"
RESET = "\033[0m"

LOGO = f"""{BLURPLE}
 _                 _      __
| |__   ___   ___ | | __ / _|___
| '_ \\ / _ \\ / _ \\| |/ /| |_/ __|
| | | | (_) | (_) |   < |  _\\__ \\
|_| |_|\\___/ \\___/|_|\\_\\|_| |___/
{RESET}"""

WELCOME_TITLE = "hookfs - a filesystem stored in webhook attachments"
WELCOME_HELP = "Type 'help' for commands or 'exit' to quit.\n"

PROMPT_TEXT = "hookfs> "

HELP_TEXT = """Available commands:
  ls [path]                           List a directory (default /)
  tree [path]                         List every file under a directory
  upload <local> <remote> [comment]   Upload a local file
  download <remote> <local>           Download a file to disk
  mv <from> <to>                      Move a file or directory
  cp <from> <to>                      Copy a file or directory
  rm <path>                           Remove a file or directory
  sync-up                             Publish the namespace snapshot
  sync-down                           Replace the namespace with the published snapshot
  header                              Show the data file header
  clear                               Clear screen and redisplay welcome message
  help                                Show this help
  exit                                Exit REPL

A destination ending with '/' keeps the source name: 'mv /a/file.txt /b/'.
Examples:
  upload movie.mp4 /movies/a.mp4 "holiday 2024"
  ls /movies
  cp /movies/a.mp4 /backup/
  download /movies/a.mp4 ./a.mp4
  sync-up"""
