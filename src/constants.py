"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    RESOLUTION_ERROR = 2


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    DEFAULT_DOWNLOAD_DIRECTORY = "offline-repository"
    GRADLE_PLUGIN_PORTAL = "https://plugins.gradle.org/m2/"
    LOCAL_REPOSITORY_PREFIX = "file:"
    LOCAL_PROJECT_PREFIX = "project "

    # Plugin marker artifacts: gradle.plugin.<id> -> <id>:<id>.gradle.plugin
    PLUGIN_GROUP_PREFIX = "gradle.plugin."
    PLUGIN_MARKER_SUFFIX = ".gradle.plugin"

    SNAPSHOT_MARKER = "SNAPSHOT"
    SNAPSHOT_SUFFIX = "-SNAPSHOT"
    BINARY_EXTENSIONS = ("jar", "aar")
    BOM_SUFFIX = "-bom"
    LIBRARY_CATEGORY = "library"

    DIGEST_ALGORITHM = "sha512"
    DIGEST_CHUNK_SIZE = 64 * 1024

    MAX_WORKERS = 128
    MAX_POM_DEPTH = 50
    MAX_PROPERTY_DEPTH = 32
    MAX_PROPERTY_LENGTH = 4096

    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    USER_AGENT = "offline-sources/1.0"

    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "OFFLINE_SOURCES_LOG_LEVEL"
    CONFIG_SECTION = "offline_sources"
