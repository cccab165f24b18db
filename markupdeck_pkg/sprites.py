"""
Sprite sheet generation.

Every folder under ``src/img/sprites/`` becomes one PNG sheet in
``dist/img/`` and one SCSS partial of position maps and mixins in
``src/scss/vendor/``.
"""

import os
import logging
from typing import Dict, List, Optional, Tuple

from jinja2 import Environment
from PIL import Image

ALGORITHMS = ('top-down', 'left-right', 'binary-tree')

SCSS_TEMPLATE = """// Generated by markupdeck from img/sprites/{{ name }}. Do not edit.
{% for icon in icons %}
${{ name }}-{{ icon.name }}: (
  name: '{{ icon.name }}',
  x: {{ icon.x }}px,
  y: {{ icon.y }}px,
  offset-x: {{ -icon.x }}px,
  offset-y: {{ -icon.y }}px,
  width: {{ icon.width }}px,
  height: {{ icon.height }}px,
  total-width: {{ width }}px,
  total-height: {{ height }}px,
  image: '{{ image }}'
);
{% endfor %}
${{ name }}-sprites: ({% for icon in icons %}${{ name }}-{{ icon.name }}{% if not loop.last %}, {% endif %}{% endfor %});

@mixin {{ name }}-sprite-width($sprite) {
  width: map-get($sprite, width);
}

@mixin {{ name }}-sprite-height($sprite) {
  height: map-get($sprite, height);
}

@mixin {{ name }}-sprite-position($sprite) {
  background-position: map-get($sprite, offset-x) map-get($sprite, offset-y);
}

@mixin {{ name }}-sprite-image($sprite) {
  background-image: url(map-get($sprite, image));
}

@mixin {{ name }}-sprite($sprite) {
  @include {{ name }}-sprite-image($sprite);
  @include {{ name }}-sprite-position($sprite);
  @include {{ name }}-sprite-width($sprite);
  @include {{ name }}-sprite-height($sprite);
}
"""


class _Node:
    def __init__(self, x, y, w, h):
        self.x = x
        self.y = y
        self.w = w
        self.h = h
        self.used = False
        self.right = None
        self.down = None


class _GrowingPacker:
    """Binary-tree packer that grows the sheet right or down as needed."""

    def __init__(self, w, h):
        self.root = _Node(0, 0, w, h)

    def find(self, node, w, h):
        if node is None:
            return None
        if node.used:
            return self.find(node.right, w, h) or self.find(node.down, w, h)
        if w <= node.w and h <= node.h:
            return node
        return None

    def split(self, node, w, h):
        node.used = True
        node.down = _Node(node.x, node.y + h, node.w, node.h - h)
        node.right = _Node(node.x + w, node.y, node.w - w, h)
        return node

    def grow_right(self, w, h):
        old = self.root
        self.root = _Node(0, 0, old.w + w, old.h)
        self.root.used = True
        self.root.down = old
        self.root.right = _Node(old.w, 0, w, old.h)
        return self.split(self.find(self.root, w, h), w, h)

    def grow_down(self, w, h):
        old = self.root
        width = max(old.w, w)
        self.root = _Node(0, 0, width, old.h + h)
        self.root.used = True
        self.root.down = _Node(0, old.h, width, h)
        self.root.right = old
        return self.split(self.find(self.root, w, h), w, h)

    def place(self, w, h):
        node = self.find(self.root, w, h)
        if node:
            return self.split(node, w, h)

        can_grow_right = h <= self.root.h
        can_grow_down = w <= self.root.w
        should_grow_right = can_grow_right and self.root.h >= self.root.w + w
        should_grow_down = can_grow_down and self.root.w >= self.root.h + h
        if should_grow_right:
            return self.grow_right(w, h)
        if should_grow_down:
            return self.grow_down(w, h)
        if can_grow_right:
            return self.grow_right(w, h)
        return self.grow_down(w, h)


def pack(sizes: List[Tuple[int, int]], padding: int = 0, algorithm: str = 'binary-tree') -> Tuple[List[Tuple[int, int]], int, int]:
    """
    Lay out rectangles on a sheet.

    Args:
        sizes: (width, height) of each icon
        padding: Gap in pixels between neighbouring icons
        algorithm: One of 'top-down', 'left-right' or 'binary-tree'

    Returns:
        (positions, sheet_width, sheet_height), positions in input order
    """
    if algorithm not in ALGORITHMS:
        raise ValueError(f"Unknown sprite algorithm: {algorithm}")
    if not sizes:
        return [], 0, 0

    positions: List[Tuple[int, int]] = [(0, 0)] * len(sizes)

    if algorithm == 'top-down':
        y = 0
        for i, (w, h) in enumerate(sizes):
            positions[i] = (0, y)
            y += h + padding
    elif algorithm == 'left-right':
        x = 0
        for i, (w, h) in enumerate(sizes):
            positions[i] = (x, 0)
            x += w + padding
    else:
        # Largest first keeps the tree compact
        order = sorted(range(len(sizes)), key=lambda i: max(sizes[i]), reverse=True)
        first_w, first_h = sizes[order[0]]
        packer = _GrowingPacker(first_w + padding, first_h + padding)
        for i in order:
            w, h = sizes[i]
            node = packer.place(w + padding, h + padding)
            positions[i] = (node.x, node.y)

    width = max(x + w for (x, _), (w, _) in zip(positions, sizes))
    height = max(y + h for (_, y), (_, h) in zip(positions, sizes))
    return positions, width, height


class SpriteBuilder:
    def __init__(self, src_dir: str, dist_dir: str, padding: int = 4, algorithm: str = 'binary-tree', logger=None):
        self.src_dir = src_dir
        self.dist_dir = dist_dir
        self.padding = padding
        self.algorithm = algorithm
        self.logger = logger or logging.getLogger('SpriteBuilder')
        self.sprites_dir = os.path.join(src_dir, 'img', 'sprites')
        self.scss_dir = os.path.join(src_dir, 'scss', 'vendor')
        self.output_dir = os.path.join(dist_dir, 'img')
        self.env = Environment(autoescape=False, trim_blocks=True, lstrip_blocks=True)

    def sprite_folders(self) -> List[str]:
        if not os.path.isdir(self.sprites_dir):
            return []
        return sorted(
            name for name in os.listdir(self.sprites_dir)
            if os.path.isdir(os.path.join(self.sprites_dir, name))
        )

    def build(self) -> List[str]:
        """Build one sheet per sprite folder and return the sheet paths."""
        sheets = []
        for folder in self.sprite_folders():
            sheet = self.build_sprite(folder)
            if sheet:
                sheets.append(sheet)
        return sheets

    def build_sprite(self, folder: str) -> Optional[str]:
        folder_path = os.path.join(self.sprites_dir, folder)
        icon_files = sorted(f for f in os.listdir(folder_path) if f.lower().endswith('.png'))
        if not icon_files:
            self.logger.warning(f"No PNG icons in sprite folder: {folder}")
            return None

        icons = []
        for icon_file in icon_files:
            icon_path = os.path.join(folder_path, icon_file)
            try:
                with Image.open(icon_path) as img:
                    icons.append((os.path.splitext(icon_file)[0], img.convert('RGBA')))
            except (IOError, OSError) as e:
                self.logger.error(f"Failed to open sprite icon {icon_path}: {e}")

        if not icons:
            return None

        positions, width, height = pack([img.size for _, img in icons], self.padding, self.algorithm)

        sheet = Image.new('RGBA', (width, height), (0, 0, 0, 0))
        for (_, img), position in zip(icons, positions):
            sheet.paste(img, position, img)

        os.makedirs(self.output_dir, exist_ok=True)
        sheet_path = os.path.join(self.output_dir, f'{folder}.png')
        sheet.save(sheet_path, 'PNG', optimize=True)
        self.logger.debug(f"Generated sprite sheet: {sheet_path}")

        icon_data = [
            {'name': name, 'x': x, 'y': y, 'width': img.width, 'height': img.height}
            for (name, img), (x, y) in zip(icons, positions)
        ]
        self.write_scss(folder, icon_data, width, height)
        return sheet_path

    def write_scss(self, folder: str, icons: List[Dict], width: int, height: int) -> str:
        scss = self.env.from_string(SCSS_TEMPLATE).render(
            name=folder,
            icons=icons,
            width=width,
            height=height,
            image=f'../img/{folder}.png',
        )
        os.makedirs(self.scss_dir, exist_ok=True)
        scss_path = os.path.join(self.scss_dir, f'_{folder}-mixins.scss')
        try:
            with open(scss_path, 'w', encoding='utf-8') as f:
                f.write(scss)
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write sprite mixins {scss_path}: {e}")
        return scss_path
