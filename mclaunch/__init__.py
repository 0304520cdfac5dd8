"""Main module of the mclaunch API.

The usual chain is: authenticate with `mclaunch.auth`, create a launcher for a game
directory with `mclaunch.launcher.create`, resolve the launch arguments of a version and
finally start the game process:

    info = auth.offline("Steve").auth()
    args = launcher.create(game_dir, info).to_arguments("1.12.2")
    exit_code = args.start().wait()
"""

LAUNCHER_NAME = "mclaunch"
LAUNCHER_VERSION = "0.1.0"
LAUNCHER_AUTHORS = ["mclaunch contributors"]
LAUNCHER_URL = "https://github.com/mclaunch/mclaunch"
