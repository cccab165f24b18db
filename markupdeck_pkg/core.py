import os
import logging
import time
import zipfile
from datetime import datetime
from jinja2 import Environment, FileSystemLoader, TemplateNotFound, TemplateSyntaxError

from .assets import AssetPipeline
from .index import IndexConfig, IndexMetadataBuilder
from .sprites import SpriteBuilder

PACKAGE_TEMPLATES = os.path.join(os.path.dirname(os.path.abspath(__file__)), 'templates')


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "Build completed in",
            "Optimized images:",
            "Sprite sheets generated:",
            "Stylesheets minified:",
            "Scripts bundled",
            "HTML pages rendered:",
            "Building index page",
            "Indexed documents:",
            "Created archive",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class MarkupDeck:
    def __init__(self, src_dir='src', dist_dir='dist', index_template='index.html', repo_dir='.', history_count=20,
                 html_vars=None, project_name=None, project_version='0.0.0', sprite_padding=4, image_quality=75,
                 timezone='Asia/Seoul', timezone_label=' (GMT+9)', logs_dir=None, history_provider=None):
        if not os.path.isdir(src_dir):
            raise FileNotFoundError(f"Source directory not found: {src_dir}")

        self.src_dir = src_dir
        self.dist_dir = dist_dir
        self.index_template = index_template
        self.repo_dir = repo_dir
        self.history_count = history_count
        self.html_vars = html_vars or {}
        self.project_name = project_name or os.path.basename(os.path.abspath(repo_dir))
        self.project_version = project_version
        self.timezone = timezone
        self.timezone_label = timezone_label
        self.logs_dir = logs_dir or os.path.join(os.getcwd(), 'logs')
        self.history_provider = history_provider

        self.setup_logging()

        self.assets = AssetPipeline(src_dir, dist_dir, html_vars=self.html_vars, image_quality=image_quality,
                                    logger=self.logger)
        self.sprites = SpriteBuilder(src_dir, dist_dir, padding=sprite_padding, logger=self.logger)

        self.stats = {
            'images_optimized': 0,
            'sprites_generated': 0,
            'styles_minified': 0,
            'scripts_bundled': 0,
            'libs_copied': 0,
            'pages_rendered': 0,
            'documents_indexed': 0,
        }

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('MarkupDeck')
        self.logger.setLevel(logging.DEBUG)

        if not any(type(h) is logging.StreamHandler for h in self.logger.handlers):
            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # One file handler, pointed at this instance's logs directory
        logs_dir = os.path.abspath(self.logs_dir)
        for handler in list(self.logger.handlers):
            if isinstance(handler, logging.FileHandler):
                if os.path.dirname(handler.baseFilename) == logs_dir:
                    return
                self.logger.removeHandler(handler)
                handler.close()

        # File handler for all logs
        os.makedirs(logs_dir, exist_ok=True)
        log_filename = datetime.now().strftime('markupdeck_%Y-%m-%d_%H-%M-%S.log')
        log_filepath = os.path.join(logs_dir, log_filename)

        file_handler = logging.FileHandler(log_filepath, encoding='utf-8')
        file_handler.setLevel(logging.DEBUG)
        file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
        file_handler.setFormatter(file_formatter)
        self.logger.addHandler(file_handler)

    def _index_environment(self):
        """Jinja2 environment for the index page, falling back to the bundled template."""
        template_dir = os.path.dirname(os.path.abspath(self.index_template))
        search_path = [template_dir, PACKAGE_TEMPLATES]
        return Environment(loader=FileSystemLoader(search_path), autoescape=True)

    def make_index_file(self):
        """Render the project index listing every HTML document."""
        self.logger.info("Building index page")
        config = IndexConfig(
            document_dir=os.path.join(self.src_dir, 'html'),
            repo_dir=self.repo_dir,
            history_count=self.history_count,
            timezone=self.timezone,
            timezone_label=self.timezone_label,
        )
        builder = IndexMetadataBuilder(config, history_provider=self.history_provider, logger=self.logger)
        summary = builder.build_summary()
        self.stats['documents_indexed'] = len(summary.documents)
        self.logger.info(f"Indexed documents: {len(summary.documents)} (branch: {summary.branch})")

        context = summary.to_plain_data()
        context['project_name'] = self.project_name
        context['project_version'] = self.project_version

        try:
            template = self._index_environment().get_template(os.path.basename(self.index_template))
            html = template.render(**context)
        except (TemplateNotFound, TemplateSyntaxError) as e:
            self.logger.error(f"Template error for index page: {e}")
            return None

        os.makedirs(self.dist_dir, exist_ok=True)
        output_file = os.path.join(self.dist_dir, 'index.html')
        with open(output_file, 'w', encoding='utf-8') as f:
            f.write(html)
        return output_file

    def build(self):
        """Main build process."""
        start_time = time.time()
        self.logger.info("Starting build...")

        self.assets.clean()
        os.makedirs(self.dist_dir, exist_ok=True)

        self.stats['images_optimized'] = self.assets.optimize_images()
        self.logger.info(f"Optimized images: {self.stats['images_optimized']}")

        self.stats['sprites_generated'] = len(self.sprites.build())
        self.logger.info(f"Sprite sheets generated: {self.stats['sprites_generated']}")

        self.stats['styles_minified'] = self.assets.minify_styles()
        self.logger.info(f"Stylesheets minified: {self.stats['styles_minified']}")

        bundle = self.assets.bundle_scripts()
        self.stats['scripts_bundled'] = 1 if bundle else 0
        self.stats['libs_copied'] = self.assets.copy_libs()
        self.logger.info(f"Scripts bundled ({self.stats['libs_copied']} libraries copied)")

        self.make_index_file()

        self.stats['pages_rendered'] = self.assets.process_html()
        self.logger.info(f"HTML pages rendered: {self.stats['pages_rendered']}")

        self.logger.info(f"Build completed in {time.time() - start_time:.6f} seconds.")
        return self.stats

    def archive_name(self, now=None):
        now = now or datetime.now()
        return f"{self.project_name}_{self.project_version}_{now.strftime('%Y%m%dT%H%M')}.zip"

    def archive(self, now=None):
        """Zip the contents of dist (except earlier archives) into dist/."""
        if not os.path.isdir(self.dist_dir):
            raise FileNotFoundError(f"Output directory not found: {self.dist_dir}")

        archive_path = os.path.join(self.dist_dir, self.archive_name(now))
        with zipfile.ZipFile(archive_path, 'w', compression=zipfile.ZIP_DEFLATED) as zf:
            for root, dirs, files in os.walk(self.dist_dir):
                dirs.sort()
                for name in sorted(files):
                    if name.endswith('.zip'):
                        continue
                    path = os.path.join(root, name)
                    zf.write(path, os.path.relpath(path, self.dist_dir).replace(os.sep, '/'))

        self.logger.info(f"Created archive {archive_path}")
        return archive_path
