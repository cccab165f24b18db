"""
Asset steps of the build: images, styles, scripts and HTML pages.
"""

import os
import shutil
import logging
from typing import Dict, List, Optional

import csscompressor
import rjsmin
from jinja2 import Environment, FileSystemLoader, TemplateError
from PIL import Image

OPTIMIZABLE_IMAGES = ('.png', '.jpg', '.jpeg', '.gif')
SPRITE_SOURCE_DIRS = ('sprites', 'sprites-svg')


class AssetPipeline:
    def __init__(self, src_dir: str, dist_dir: str, html_vars: Optional[Dict] = None, image_quality: int = 75, logger=None):
        self.src_dir = src_dir
        self.dist_dir = dist_dir
        self.html_vars = html_vars or {}
        self.image_quality = image_quality
        self.logger = logger or logging.getLogger('AssetPipeline')

    def _walk(self, directory: str, skip_dirs=()) -> List[str]:
        """Return paths relative to directory, skipping the named top-level subdirectories."""
        found = []
        if not os.path.isdir(directory):
            return found
        for root, dirs, files in os.walk(directory):
            rel_root = os.path.relpath(root, directory)
            if rel_root == '.':
                dirs[:] = [d for d in dirs if d not in skip_dirs]
            for name in files:
                found.append(os.path.normpath(os.path.join(rel_root, name)))
        return sorted(found)

    def clean(self, subdir: Optional[str] = None) -> None:
        """Remove dist, or only one of its subdirectories."""
        target = os.path.join(self.dist_dir, subdir) if subdir else self.dist_dir
        if os.path.isdir(target):
            shutil.rmtree(target)
            self.logger.debug(f"Removed {target}")

    def optimize_image(self, src_path: str, dest_path: str) -> bool:
        """Re-encode one image with Pillow. Returns False if it was copied unchanged."""
        ext = os.path.splitext(src_path)[1].lower()
        try:
            with Image.open(src_path) as img:
                if ext in ('.jpg', '.jpeg'):
                    img.save(dest_path, 'JPEG', quality=self.image_quality, progressive=True, optimize=True)
                elif ext == '.png':
                    img.save(dest_path, 'PNG', optimize=True)
                else:
                    img.save(dest_path, 'GIF', save_all=True, optimize=True, interlace=True)
            return True
        except (IOError, OSError, ValueError) as e:
            self.logger.error(f"Failed to optimize {src_path}, copying as is: {e}")
            shutil.copy2(src_path, dest_path)
            return False

    def optimize_images(self) -> int:
        """Optimize everything under img/ except sprite sources. Returns the number re-encoded."""
        img_src = os.path.join(self.src_dir, 'img')
        img_dest = os.path.join(self.dist_dir, 'img')
        optimized = 0

        for rel_path in self._walk(img_src, skip_dirs=SPRITE_SOURCE_DIRS):
            src_path = os.path.join(img_src, rel_path)
            dest_path = os.path.join(img_dest, rel_path)
            os.makedirs(os.path.dirname(dest_path), exist_ok=True)

            if os.path.splitext(rel_path)[1].lower() in OPTIMIZABLE_IMAGES:
                if self.optimize_image(src_path, dest_path):
                    optimized += 1
                    self.logger.debug(f"Optimized image: {rel_path}")
            else:
                shutil.copy2(src_path, dest_path)
        return optimized

    def minify_styles(self) -> int:
        """Minify CSS sources into dist/css as *.min.css."""
        css_src = os.path.join(self.src_dir, 'css')
        css_dest = os.path.join(self.dist_dir, 'css')
        written = 0

        for rel_path in self._walk(css_src):
            if not rel_path.endswith('.css'):
                continue
            src_path = os.path.join(css_src, rel_path)
            if rel_path.endswith('.min.css'):
                dest_path = os.path.join(css_dest, rel_path)
            else:
                dest_path = os.path.join(css_dest, rel_path[:-len('.css')] + '.min.css')
            os.makedirs(os.path.dirname(dest_path), exist_ok=True)

            try:
                if rel_path.endswith('.min.css'):
                    shutil.copy2(src_path, dest_path)
                else:
                    with open(src_path, 'r', encoding='utf-8') as f:
                        css_content = f.read()
                    with open(dest_path, 'w', encoding='utf-8') as f:
                        f.write(csscompressor.compress(css_content))
                    self.logger.debug(f"Minified CSS: {rel_path}")
                written += 1
            except (IOError, OSError, PermissionError) as e:
                self.logger.error(f"Failed to minify CSS file {rel_path}: {e}")
            except UnicodeDecodeError as e:
                self.logger.error(f"Failed to decode CSS file {rel_path}: {e}")
        return written

    def bundle_scripts(self, bundle_name: str = 'script') -> Optional[str]:
        """Concatenate top-level js/*.js in name order and minify into one file."""
        js_src = os.path.join(self.src_dir, 'js')
        if not os.path.isdir(js_src):
            return None

        sources = sorted(
            name for name in os.listdir(js_src)
            if name.endswith('.js') and os.path.isfile(os.path.join(js_src, name))
        )
        if not sources:
            return None

        chunks = []
        for name in sources:
            with open(os.path.join(js_src, name), 'r', encoding='utf-8') as f:
                chunks.append(f.read())
        bundled = '\n'.join(chunks)

        js_dest = os.path.join(self.dist_dir, 'js')
        os.makedirs(js_dest, exist_ok=True)
        bundle_path = os.path.join(js_dest, f'{bundle_name}.min.js')
        with open(bundle_path, 'w', encoding='utf-8') as f:
            f.write(rjsmin.jsmin(bundled))
        self.logger.debug(f"Bundled {len(sources)} scripts into {bundle_path}")
        return bundle_path

    def copy_libs(self) -> int:
        """Copy third-party scripts from js/libs untouched."""
        libs_src = os.path.join(self.src_dir, 'js', 'libs')
        libs_dest = os.path.join(self.dist_dir, 'js', 'libs')
        copied = 0
        for rel_path in self._walk(libs_src):
            if not rel_path.endswith('.js'):
                continue
            dest_path = os.path.join(libs_dest, rel_path)
            os.makedirs(os.path.dirname(dest_path), exist_ok=True)
            shutil.copy2(os.path.join(libs_src, rel_path), dest_path)
            copied += 1
        return copied

    def html_sources(self) -> List[str]:
        """HTML pages to render, excluding partials (@*) and the includes/ directory."""
        html_src = os.path.join(self.src_dir, 'html')
        pages = []
        for rel_path in self._walk(html_src, skip_dirs=('includes',)):
            if not rel_path.endswith('.html'):
                continue
            if any(part.startswith('@') for part in rel_path.split(os.sep)):
                continue
            pages.append(rel_path)
        return pages

    def process_html(self) -> int:
        """Render HTML pages through Jinja2 into dist/html."""
        html_src = os.path.join(self.src_dir, 'html')
        html_dest = os.path.join(self.dist_dir, 'html')
        env = Environment(loader=FileSystemLoader(html_src))
        env.globals.update(self.html_vars)
        rendered = 0

        for rel_path in self.html_sources():
            template_name = rel_path.replace(os.sep, '/')
            try:
                html = env.get_template(template_name).render()
            except TemplateError as e:
                self.logger.error(f"Template error for {template_name}: {e}")
                continue
            except UnicodeDecodeError as e:
                self.logger.error(f"Failed to decode HTML file {template_name}: {e}")
                continue

            dest_path = os.path.join(html_dest, rel_path)
            os.makedirs(os.path.dirname(dest_path), exist_ok=True)
            try:
                with open(dest_path, 'w', encoding='utf-8') as f:
                    f.write(html)
                rendered += 1
            except (IOError, OSError, PermissionError) as e:
                self.logger.error(f"Failed to write HTML file {dest_path}: {e}")
        return rendered
