import pytest
import yaml
from pathlib import Path
from vsite.config.models import AppConfig
from vsite.infrastructure.event_bus import EventBus
from vsite.infrastructure.file_scanner import FileScanner

# ============================================================================
# Configuration Fixtures
# ============================================================================

@pytest.fixture
def sample_config():
    """Returns the default AppConfig object for testing."""
    return AppConfig()

@pytest.fixture
def config_yaml_path(tmp_path):
    """Creates a temporary YAML config file."""
    conf_dir = tmp_path / "conf"
    conf_dir.mkdir()
    conf_file = conf_dir / "vsite.yaml"

    content = {
        'general': {
            'title': 'Home Movies',
            'video_extensions': ['mp4', 'MKV', '.webm'],
            'conversion_extensions': ['mkv'],
            'native_extension': 'mp4',
        },
        'conversion': {
            'cpu': {
                'name': 'cpu',
                'video_codec': 'libx265',
                'preset': 'medium',
                'quality_flag': '-crf',
                'quality': 28,
            }
        }
    }

    with open(conf_file, 'w') as f:
        yaml.dump(content, f)

    return conf_file

# ============================================================================
# EventBus / Scanner Fixtures
# ============================================================================

@pytest.fixture
def event_bus():
    """Returns a fresh EventBus instance."""
    return EventBus()

@pytest.fixture
def scanner(sample_config):
    return FileScanner.from_config(sample_config.general)

# ============================================================================
# File System Fixtures
# ============================================================================

def write_file(path: Path, content: bytes = b"dummy video content") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path

@pytest.fixture
def video_root(tmp_path):
    """Creates an empty gallery root directory."""
    root = tmp_path / "videos"
    root.mkdir()
    return root

@pytest.fixture
def make_tree(video_root):
    """Returns a helper creating files under video_root from relative paths."""
    def _make(*relative_paths: str) -> Path:
        for rel in relative_paths:
            write_file(video_root / rel)
        return video_root
    return _make

@pytest.fixture
def simple_gallery(make_tree):
    """Root with a.mp4 and sub/b.mkv (no converted sibling)."""
    return make_tree("a.mp4", "sub/b.mkv")

@pytest.fixture
def nested_gallery(make_tree):
    """Videos only in leaf directories, plus hidden, converted and non-video files."""
    return make_tree(
        "top.mp4",
        "a/b/c/deep.mp4",
        "a/b/c/another.webm",
        "x/clip.avi",
        "x/clip.mp4",
        "x/notes.txt",
        ".hidden/secret.mp4",
        "y/.cache/thumb.mp4",
    )


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: marks tests as integration tests"
    )
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests"
    )
