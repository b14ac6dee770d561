"""Command line access to local backups"""
import argparse
import json
import os
import sys
from gettext import gettext as _

from savekeeper import __version__, settings
from savekeeper.database import schema
from savekeeper.exceptions import NotFoundError, PersistenceError, SaveKeeperError
from savekeeper.local_backup import LocalBackupService
from savekeeper.util import system
from savekeeper.util.log import enable_debug_logging, logger
from savekeeper.util.strings import human_size


SETTING_KEYS = ("backups_dir", "staging_dir", "cache_dir", "ludusavi_path", "db_path")


def get_parser():
    parser = argparse.ArgumentParser(prog="savekeeper", description="Manage local backups of game saves")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    parser.add_argument("-d", "--debug", action="store_true", help="show debug messages")
    subparsers = parser.add_subparsers(dest="command", required=True)

    list_parser = subparsers.add_parser("list", help="list the backups of a game")
    list_parser.add_argument("shop")
    list_parser.add_argument("object_id")
    list_parser.add_argument("-j", "--json", action="store_true", help="print the backups as JSON")

    create_parser = subparsers.add_parser("create", help="back up the saves of a game")
    create_parser.add_argument("shop")
    create_parser.add_argument("object_id")
    create_parser.add_argument("--label")
    create_parser.add_argument("--download-option", dest="download_option_title")

    rename_parser = subparsers.add_parser("rename", help="change the label of a backup")
    rename_parser.add_argument("backup_id")
    rename_parser.add_argument("label")

    for name, help_text in (("freeze", "protect a backup from deletion"), ("unfreeze", "allow deleting a backup")):
        freeze_parser = subparsers.add_parser(name, help=help_text)
        freeze_parser.add_argument("backup_id")

    delete_parser = subparsers.add_parser("delete", help="delete a backup")
    delete_parser.add_argument("backup_id")

    restore_parser = subparsers.add_parser("restore", help="restore the files of a backup")
    restore_parser.add_argument("backup_id")
    restore_parser.add_argument("shop")
    restore_parser.add_argument("object_id")

    reconcile_parser = subparsers.add_parser("reconcile", help="find archives and records that don't match")
    reconcile_parser.add_argument("--clean", action="store_true", help="remove what doesn't match")

    game_parser = subparsers.add_parser("game", help="register games and their Wine prefix")
    game_subparsers = game_parser.add_subparsers(dest="game_command", required=True)
    game_list_parser = game_subparsers.add_parser("list", help="list registered games")
    game_list_parser.add_argument("shop", nargs="?")
    game_add_parser = game_subparsers.add_parser("add", help="register a game, or update it")
    game_add_parser.add_argument("shop")
    game_add_parser.add_argument("object_id")
    game_add_parser.add_argument("--title")
    game_add_parser.add_argument("--wine-prefix", dest="wine_prefix_path")
    game_prefix_parser = game_subparsers.add_parser("set-prefix", help="change the Wine prefix of a game")
    game_prefix_parser.add_argument("shop")
    game_prefix_parser.add_argument("object_id")
    game_prefix_parser.add_argument("wine_prefix_path")
    game_remove_parser = game_subparsers.add_parser("remove", help="forget a game")
    game_remove_parser.add_argument("shop")
    game_remove_parser.add_argument("object_id")

    config_parser = subparsers.add_parser("config", help="show or change a setting")
    config_parser.add_argument("key", choices=SETTING_KEYS)
    config_parser.add_argument("value", nargs="?")
    return parser


def print_backups(backups, as_json=False):
    if as_json:
        print(json.dumps(backups, indent=2))
        return
    for backup in backups:
        print(
            "%s  %s  %-10s  %s%s"
            % (
                backup["id"],
                backup["created_at"],
                human_size(backup["size_bytes"]),
                backup["label"],
                " [frozen]" if backup["is_frozen"] else "",
            )
        )


def get_prefix_path(path):
    prefix = os.path.realpath(os.path.expanduser(path))
    if not system.path_exists(os.path.join(prefix, "user.reg")):
        logger.warning("%s doesn't look like a Wine prefix, it has no user.reg", prefix)
    return prefix


def run_game_command(registry, args):
    if args.game_command == "list":
        for game in registry.get_games(args.shop):
            print("%s  %s  %s  %s" % (game["shop"], game["object_id"], game["title"], game["wine_prefix_path"] or "-"))
        return

    game_name = "%s (%s)" % (args.object_id, args.shop)
    if args.game_command == "add":
        wine_prefix_path = get_prefix_path(args.wine_prefix_path) if args.wine_prefix_path else None
        if registry.get_game(args.shop, args.object_id):
            changes = {"title": args.title, "wine_prefix_path": wine_prefix_path}
            changes = {key: value for key, value in changes.items() if value}
            if changes:
                registry.update_game(args.shop, args.object_id, **changes)
        else:
            registry.add_game(args.shop, args.object_id, args.title, wine_prefix_path)
        logger.info("Registered %s", game_name)
    elif args.game_command == "set-prefix":
        if not registry.update_game(args.shop, args.object_id, wine_prefix_path=get_prefix_path(args.wine_prefix_path)):
            raise NotFoundError(_("Game {} is not registered").format(game_name))
        logger.info("Wine prefix of %s changed", game_name)
    elif args.game_command == "remove":
        if not registry.delete_game(args.shop, args.object_id):
            raise NotFoundError(_("Game {} is not registered").format(game_name))
        logger.info("Removed %s", game_name)


def run_config_command(args):
    if args.value is None:
        print(settings.read_setting(args.key))
    else:
        try:
            settings.write_setting(args.key, args.value)
        except OSError as ex:
            raise PersistenceError("Unable to save setting %s: %s" % (args.key, ex)) from ex


def run_command(service, args):
    if args.command == "list":
        print_backups(service.list_backups(args.object_id, args.shop), as_json=args.json)
    elif args.command == "create":
        print(service.create_backup(args.object_id, args.shop, args.download_option_title, args.label))
    elif args.command == "rename":
        service.rename_backup(args.backup_id, args.label)
    elif args.command in ("freeze", "unfreeze"):
        service.toggle_freeze(args.backup_id, args.command == "freeze")
    elif args.command == "delete":
        service.delete_backup(args.backup_id)
    elif args.command == "restore":
        service.restore_backup(args.backup_id, args.object_id, args.shop)
    elif args.command == "reconcile":
        report = service.reconcile(clean=args.clean)
        for backup_id in report.orphaned_archives:
            print("orphaned archive: %s" % backup_id)
        for backup_id in report.dangling_records:
            print("missing archive: %s" % backup_id)
    elif args.command == "game":
        run_game_command(service.game_registry, args)


def main(argv=None, service=None):
    args = get_parser().parse_args(argv)
    if args.debug:
        enable_debug_logging()
    try:
        if args.command == "config":
            run_config_command(args)
            return 0
        if service is None:
            schema.syncdb()
            service = LocalBackupService()
        run_command(service, args)
    except SaveKeeperError as ex:
        logger.error(ex.message)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
