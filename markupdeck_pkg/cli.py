#!/usr/bin/env python3
"""
Command-line interface for markupdeck.
"""

import os
import sys
import argparse
import shutil
from .core import MarkupDeck, PACKAGE_TEMPLATES
from .settings import MarkupDeckSettings

SAMPLE_PAGE = """<!DOCTYPE html>
<html lang="ko">
<head>
    <meta charset="utf-8">
    <title>Main : Common : yet</title>
    <link rel="stylesheet" href="../css/style.min.css">
</head>
<body>
    {% include "includes/header.html" %}
    <main>
        <h1>Main</h1>
    </main>
    <script src="../js/script.min.js"></script>
</body>
</html>
"""

SAMPLE_HEADER = """<header>
    <p>{{ site_name | default('My markup') }}</p>
</header>
"""


def create_starter_structure() -> None:
    """Create a starter source tree with a sample page, stylesheet and script."""
    current_dir = os.getcwd()

    directories = [
        'src/html/includes',
        'src/css',
        'src/js/libs',
        'src/img/sprites',
    ]

    for directory in directories:
        dir_path = os.path.join(current_dir, directory)
        if os.path.exists(dir_path):
            print(f"Directory already exists: {directory}")
        else:
            os.makedirs(dir_path, exist_ok=True)
            print(f"Created directory: {directory}")

    starter_files = {
        'src/html/01-main.html': SAMPLE_PAGE,
        'src/html/includes/header.html': SAMPLE_HEADER,
        'src/css/style.css': "body {\n    margin: 0;\n}\n",
        'src/js/common.js': "document.documentElement.className += ' js';\n",
    }

    for rel_path, content in starter_files.items():
        file_path = os.path.join(current_dir, rel_path)
        if os.path.exists(file_path):
            print(f"File already exists: {rel_path}")
        else:
            with open(file_path, 'w', encoding='utf-8') as f:
                f.write(content)
            print(f"Created file: {rel_path}")

    index_path = os.path.join(current_dir, 'index.html')
    if os.path.exists(index_path):
        print("Index template already exists: index.html")
    else:
        shutil.copy2(os.path.join(PACKAGE_TEMPLATES, 'index.html'), index_path)
        print("Created index template: index.html")


def main() -> None:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(description='markupdeck - markup publishing build')
    parser.add_argument('--src', type=str, help='Source directory (html, css, js, img)')
    parser.add_argument('--dist', type=str, help='Output directory for the build')
    parser.add_argument('--index-template', type=str, help='Template for the project index page')
    parser.add_argument('--repo', type=str, help='Git repository used for commit history')
    parser.add_argument('--history-count', type=int, help='Number of recent commits to read')
    parser.add_argument('--project-name', type=str, help='Project name for the index page and archive')
    parser.add_argument('--project-version', type=str, help='Project version for the archive name')
    parser.add_argument('--zip', action='store_true', default=None,
                        help='Create a zip archive of the output after building')
    parser.add_argument('--index-only', action='store_true',
                        help='Only regenerate the index page')
    parser.add_argument('--init', type=str, choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file and starter source tree')
    parser.add_argument('--version', action='version', version='%(prog)s 1.0.0')

    args = parser.parse_args()

    if args.init:
        settings_loader = MarkupDeckSettings()
        config_path = settings_loader.create_sample_config(args.init)
        print(f"Created sample configuration file: {config_path}")

        print("\nCreating starter project structure...")
        create_starter_structure()
        print("\nEdit the configuration file and sources, then run 'markupdeck' to build.")
        return

    settings_loader = MarkupDeckSettings()
    settings_loader.load_settings()

    index_only = args.index_only
    args_dict = {k: v for k, v in vars(args).items() if v is not None and k not in ('init', 'index_only')}
    final_settings = settings_loader.merge_with_args(args_dict)

    try:
        deck = MarkupDeck(
            src_dir=final_settings['src'],
            dist_dir=final_settings['dist'],
            index_template=final_settings['index_template'],
            repo_dir=final_settings['repo'],
            history_count=final_settings['history_count'],
            html_vars=final_settings['html_vars'],
            project_name=final_settings['project_name'],
            project_version=final_settings['project_version'],
            sprite_padding=final_settings['sprite_padding'],
            image_quality=final_settings['image_quality'],
            timezone=final_settings['timezone'],
            timezone_label=final_settings['timezone_label'],
        )

        if index_only:
            deck.make_index_file()
        else:
            deck.build()

        if final_settings['zip']:
            deck.archive()

    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
