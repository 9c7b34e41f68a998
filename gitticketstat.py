#!/usr/bin/env python3
"""
Git Ticket Statistics - per-ticket code churn from commit history

Reads `git log --numstat` for a repository, finds issue-tracker ticket
identifiers (e.g. PROJ-123) in every commit message and writes a CSV with,
per ticket:
- Lines added
- Lines deleted
- Total changed lines
- Number of commits referencing the ticket

Version: 1.0.0
"""

import csv
import json
import os
import re
import stat
import subprocess
import sys
import tempfile
import time
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, Union

import click
import yaml
from colorama import Fore, Style, init as colorama_init
from tqdm import tqdm

colorama_init(autoreset=True)


# Version information
VERSION = "1.0.0"

DEFAULT_TICKET_PATTERN = r"[A-Z]+-[0-9]+"
DEFAULT_FILE_NAME = "gitticketstat.csv"

SORT_ORDERS = ("first-seen", "ticket", "total", "commits")

CONFIG_FILE_NAMES = (
    ".gitticketstat.yaml",
    ".gitticketstat.yml",
    ".gitticketstat.json",
)

# Record framing for `git log --format`: \x1e starts a commit, \x1f ends its header
RECORD_START = "\x1e"
HEADER_END = "\x1f"
LOG_FORMAT = "%x1e%H%x00%ct%x00%an%x00%ae%x00%B%x1f"

CSV_HEADER = [
    ("ticket", "Ticket"),
    ("added", "Added"),
    ("deleted", "Deleted"),
    ("total", "Total"),
    ("commits", "Commits"),
]


# ============================================================================
# ERRORS
# ============================================================================


class TicketStatError(Exception):
    """Base class for every failure the tool reports to the user"""


class ConfigurationError(TicketStatError, ValueError):
    """Invalid ticket pattern, sort order or configuration file"""


class SourceUnavailableError(TicketStatError, RuntimeError):
    """Commit history could not be read from the repository"""


class ParseError(TicketStatError, ValueError):
    """History text does not follow the expected numstat layout"""


class SinkError(TicketStatError, OSError):
    """The CSV report could not be written"""


# ============================================================================
# DATA STRUCTURES & MODELS
# ============================================================================


@dataclass(frozen=True)
class FileStat:
    """One numstat line: lines added/deleted in a single file"""

    added: int
    deleted: int
    path: str = ""


@dataclass(frozen=True)
class CommitRecord:
    """
    A parsed commit: its message plus one FileStat per touched file.
    Metadata fields are informational; aggregation only reads
    `message` and `file_stats`.
    """

    message: str
    file_stats: Tuple[FileStat, ...] = ()
    commit_hash: str = ""
    timestamp: int = 0
    author_name: str = ""
    author_email: str = ""


@dataclass(frozen=True)
class CommitShortStat:
    added: int = 0
    deleted: int = 0

    @property
    def total(self) -> int:
        return self.added + self.deleted


@dataclass
class TicketStat:
    """
    Accumulated churn for one ticket.

    `total` is kept equal to `added + deleted` by every mutator;
    `commits` counts attributions, so a commit that mentions the
    ticket twice counts twice.
    """

    ticket: str
    added: int = 0
    deleted: int = 0
    total: int = 0
    commits: int = 0

    @classmethod
    def empty(cls, ticket: str) -> "TicketStat":
        """Identity element for merge()"""
        return cls(ticket=ticket)

    def record(self, short_stat: CommitShortStat):
        """Attribute one commit's short stat to this ticket"""
        self.added += short_stat.added
        self.deleted += short_stat.deleted
        self.total += short_stat.added + short_stat.deleted
        self.commits += 1

    def merge(self, other: "TicketStat") -> "TicketStat":
        """Pointwise sum of two accumulators for the same ticket"""
        if other.ticket != self.ticket:
            raise ValueError(
                f"Cannot merge stats of different tickets: {self.ticket} != {other.ticket}"
            )
        return TicketStat(
            ticket=self.ticket,
            added=self.added + other.added,
            deleted=self.deleted + other.deleted,
            total=self.total + other.total,
            commits=self.commits + other.commits,
        )

    __add__ = merge

    def to_dict(self) -> Dict[str, Any]:
        return {
            "ticket": self.ticket,
            "added": self.added,
            "deleted": self.deleted,
            "total": self.total,
            "commits": self.commits,
        }


# ============================================================================
# CONFIGURATION
# ============================================================================


def load_config_file(config_path: str) -> Dict[str, Any]:
    """
    Load configuration from YAML or JSON file.
    Supports .gitticketstat.yaml, .gitticketstat.yml, .gitticketstat.json
    """
    if not os.path.exists(config_path):
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    file_ext = os.path.splitext(config_path)[1].lower()

    with open(config_path, "r", encoding="utf-8") as f:
        try:
            if file_ext in [".yaml", ".yml"]:
                data = yaml.safe_load(f)
            elif file_ext == ".json":
                data = json.load(f)
            else:
                raise ConfigurationError(
                    f"Unsupported config file format: {file_ext}"
                )
        except (yaml.YAMLError, json.JSONDecodeError, UnicodeDecodeError) as e:
            raise ConfigurationError(
                f"Failed to parse configuration file {config_path}: {e}"
            ) from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration file must contain a mapping: {config_path}"
        )
    bad_keys = [k for k in data if not isinstance(k, str)]
    if bad_keys:
        raise ConfigurationError(
            f"Configuration keys must be strings, got {bad_keys!r} in {config_path}"
        )
    return data


def find_config_file(repo_path: str) -> Optional[str]:
    """
    Auto-discover configuration file in repository or current directory.
    """
    search_paths = [
        repo_path,
        os.getcwd(),
    ]

    for search_dir in search_paths:
        for config_name in CONFIG_FILE_NAMES:
            config_path = os.path.join(search_dir, config_name)
            if os.path.exists(config_path):
                return config_path

    return None


class ConfigResolver:
    """
    Resolve configuration with precedence: CLI > Config File > Defaults
    """

    def __init__(
        self,
        cli_args: Dict[str, Any],
        config_path: Optional[str],
        repo_path: str,
        reporter: Optional["ProgressReporter"] = None,
    ):
        self.cli = {k: v for k, v in cli_args.items() if v is not None}
        self.config = {}
        self.config_source = None

        if config_path:
            self.config = load_config_file(config_path)
            self.config_source = config_path
        else:
            auto_path = find_config_file(repo_path)
            if auto_path:
                try:
                    self.config = load_config_file(auto_path)
                    self.config_source = auto_path
                except (OSError, ConfigurationError) as e:
                    if reporter:
                        reporter.warning(
                            f"Found config file but failed to load: {e}"
                        )

        # Normalize config keys (kebab-case to snake_case)
        self.config = {k.replace("-", "_"): v for k, v in self.config.items()}

    def get(self, key: str, default: Any = None) -> Any:
        """Resolve value based on precedence"""
        if key in self.cli:
            return self.cli[key]
        if key in self.config:
            return self.config[key]
        return default


@dataclass(frozen=True)
class Settings:
    """Resolved, validated run settings"""

    ticket_pattern: re.Pattern
    sort_by: str = "first-seen"
    quiet: bool = False
    verbose: bool = False
    use_colors: bool = True

    @classmethod
    def from_resolver(cls, resolver: ConfigResolver) -> "Settings":
        sort_by = resolver.get("sort", "first-seen")
        if sort_by not in SORT_ORDERS:
            raise ConfigurationError(
                f"Unknown sort order '{sort_by}' (expected one of: {', '.join(SORT_ORDERS)})"
            )
        return cls(
            ticket_pattern=compile_ticket_pattern(
                resolver.get("ticket_pattern", DEFAULT_TICKET_PATTERN)
            ),
            sort_by=sort_by,
            quiet=_resolve_flag(resolver, "quiet"),
            verbose=_resolve_flag(resolver, "verbose"),
            use_colors=not _resolve_flag(resolver, "no_color"),
        )


def _resolve_flag(resolver: ConfigResolver, key: str) -> bool:
    value = resolver.get(key, False)
    if not isinstance(value, bool):
        raise ConfigurationError(
            f"Setting '{key}' must be true or false, got {value!r}"
        )
    return value


# ============================================================================
# PROGRESS REPORTING
# ============================================================================


class ProgressReporter:
    """
    Console reporting for a run
    - Color-coded output (colorama)
    - Progress bars with ETA (tqdm)
    """

    def __init__(
        self, quiet: bool = False, verbose: bool = False, use_colors: bool = True
    ):
        self.quiet = quiet
        self.verbose = verbose
        self.use_colors = use_colors
        self.start_time = time.time()
        self.stage_times = {}

    def _colorize(self, text: str, color: str) -> str:
        if self.use_colors:
            return f"{color}{text}{Style.RESET_ALL}"
        return text

    def stage_start(self, stage_name: str, message: str = ""):
        """Mark the start of a processing stage"""
        if self.quiet:
            return
        self.stage_times[stage_name] = time.time()

        separator = self._colorize("=" * 70, Fore.CYAN)
        stage_text = self._colorize(f"🔄 {stage_name}", Fore.BLUE + Style.BRIGHT)

        print(f"\n{separator}")
        print(stage_text)
        if message:
            print(f"   {message}")
        print(separator)

    def stage_complete(self, stage_name: str, stats: Dict = None):
        """Mark completion of a processing stage"""
        if self.quiet:
            return
        elapsed = time.time() - self.stage_times.get(stage_name, time.time())

        complete_text = self._colorize(
            f"✅ {stage_name} complete ({elapsed:.2f}s)", Fore.GREEN + Style.BRIGHT
        )
        print(complete_text)

        if stats and self.verbose:
            for key, value in stats.items():
                print(f"   {key}: {value}")

    def create_progress_bar(
        self, total: int, desc: str = "Processing"
    ) -> Optional[tqdm]:
        """Progress bar over commits, None when quiet"""
        if self.quiet:
            return None

        return tqdm(
            total=total,
            desc=self._colorize(desc, Fore.CYAN),
            unit=" commits",
            ncols=100,
            bar_format="{l_bar}{bar}| {n_fmt}/{total_fmt} [{elapsed}<{remaining}, {rate_fmt}]",
        )

    def info(self, message: str):
        if not self.quiet:
            info_text = self._colorize("ℹ️  ", Fore.BLUE)
            print(f"{info_text}{message}")

    def warning(self, message: str):
        if not self.quiet:
            warning_text = self._colorize("⚠️  ", Fore.YELLOW + Style.BRIGHT)
            print(f"{warning_text}{message}")

    def error(self, message: str):
        """Display error message (always shown)"""
        error_text = self._colorize(f"❌ ERROR: {message}", Fore.RED + Style.BRIGHT)
        print(error_text, file=sys.stderr)

    def success(self, message: str):
        if not self.quiet:
            success_text = self._colorize(f"✨ {message}", Fore.GREEN + Style.BRIGHT)
            print(success_text)

    def summary(self, stats: Dict[str, Any]):
        """Display final summary"""
        if self.quiet:
            return
        elapsed = time.time() - self.start_time

        separator = self._colorize("=" * 70, Fore.CYAN)
        header = self._colorize("📊 TICKET STATISTICS SUMMARY", Fore.MAGENTA + Style.BRIGHT)

        print(f"\n{separator}")
        print(header)
        print(separator)
        for key, value in stats.items():
            print(f"   {key}: {value}")

        time_text = self._colorize(f"⏱️  Total time: {elapsed:.2f}s", Fore.YELLOW)
        print(f"\n{time_text}")
        print(f"{separator}\n")


# ============================================================================
# HISTORY SOURCE
# ============================================================================


class GitHistorySource:
    """Reads commit history with numstat from a local git repository"""

    def __init__(self, repo_path: str, git_executable: str = "git"):
        self.repo_path = os.path.abspath(repo_path)
        self.git_executable = git_executable
        self.warnings = []

    def _run_git(self, *args: str) -> subprocess.CompletedProcess:
        cmd = [self.git_executable, "-C", self.repo_path] + list(args)
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise SourceUnavailableError(
                f"Could not run {self.git_executable}: {e}"
            ) from e

    def validate(self):
        """Fail unless repo_path is inside a git work tree or git dir"""
        if not os.path.isdir(self.repo_path):
            raise SourceUnavailableError(f"Repository path does not exist: {self.repo_path}")

        result = self._run_git("rev-parse", "--git-dir")
        if result.returncode != 0:
            raise SourceUnavailableError(
                f"Not a git repository: {self.repo_path}: {result.stderr.strip()}"
            )

    def has_commits(self) -> bool:
        # An unborn branch is an empty history, not a failure
        result = self._run_git("rev-parse", "--verify", "-q", "HEAD")
        return result.returncode == 0

    def count_commits(self) -> int:
        if not self.has_commits():
            return 0

        result = self._run_git("rev-list", "--count", "HEAD")
        if result.returncode != 0:
            raise SourceUnavailableError(f"Git command failed: {result.stderr.strip()}")
        return int(result.stdout.strip() or 0)

    def read_log(self) -> str:
        """
        Return the full `git log --numstat` text for HEAD.

        Raises:
            SourceUnavailableError: git is missing or exits non-zero
        """
        self.validate()
        if not self.has_commits():
            return ""

        result = self._run_git("log", "--numstat", f"--format={LOG_FORMAT}")
        if result.returncode != 0:
            raise SourceUnavailableError(f"Git command failed: {result.stderr.strip()}")

        if result.stderr.strip():
            self.warnings.append(result.stderr.strip())

        return result.stdout


# ============================================================================
# COMMIT PARSER
# ============================================================================


def _parse_count(value: str, line: str, commit_hash: str) -> int:
    # Binary files report "-" for both columns
    if value == "-":
        return 0
    try:
        return int(value)
    except ValueError:
        raise ParseError(
            f"Invalid numstat count '{value}' in commit {commit_hash}: {line!r}"
        ) from None


def parse_numstat_line(line: str, commit_hash: str = "") -> FileStat:
    """
    Parse "<added>\\t<deleted>\\t<path>" into a FileStat.
    Renamed paths ("a => b") are kept verbatim.
    """
    parts = line.split("\t", 2)
    if len(parts) != 3:
        raise ParseError(f"Malformed numstat line in commit {commit_hash}: {line!r}")

    added_str, deleted_str, file_path = parts
    return FileStat(
        added=_parse_count(added_str, line, commit_hash),
        deleted=_parse_count(deleted_str, line, commit_hash),
        path=file_path,
    )


def _parse_record(record: str) -> CommitRecord:
    header, sep, numstat = record.partition(HEADER_END)
    if not sep:
        raise ParseError(f"Unterminated commit header: {record[:50]!r}")

    parts = header.split("\x00", 4)
    if len(parts) != 5:
        raise ParseError(f"Malformed commit header: {header[:50]!r}")

    commit_hash, timestamp, author_name, author_email, body = parts
    try:
        timestamp = int(timestamp)
    except ValueError:
        raise ParseError(
            f"Invalid timestamp '{timestamp}' in commit {commit_hash}"
        ) from None

    file_stats = tuple(
        parse_numstat_line(line, commit_hash)
        for line in numstat.splitlines()
        if line.strip()
    )

    return CommitRecord(
        message=body.rstrip("\n"),
        file_stats=file_stats,
        commit_hash=commit_hash,
        timestamp=timestamp,
        author_name=author_name,
        author_email=author_email,
    )


def parse_numstat_log(text: str) -> Iterator[CommitRecord]:
    """
    Lex `git log --numstat --format=LOG_FORMAT` output into CommitRecords.

    Commits are yielded in log order. Commits without file changes
    (merges, empty commits) are kept with empty `file_stats`.

    Raises:
        ParseError: text outside a commit record, a broken header or a
            numstat line that is not "<added>\\t<deleted>\\t<path>"
    """
    preamble, *records = text.split(RECORD_START)
    if preamble.strip():
        raise ParseError(f"Unexpected text before first commit: {preamble[:50]!r}")

    for record in records:
        yield _parse_record(record)


# ============================================================================
# TICKET EXTRACTION
# ============================================================================


def compile_ticket_pattern(pattern: Union[str, re.Pattern]) -> re.Pattern:
    """
    Compile a user supplied ticket pattern, failing before any commit
    is processed.
    """
    if isinstance(pattern, re.Pattern):
        return pattern
    if not isinstance(pattern, str) or not pattern:
        raise ConfigurationError(f"Ticket pattern must be a non-empty string: {pattern!r}")
    try:
        return re.compile(pattern)
    except re.error as e:
        raise ConfigurationError(f"Invalid ticket pattern '{pattern}': {e}") from e


def extract_tickets(message: str, pattern: re.Pattern) -> List[str]:
    """
    Return every ticket identifier in message, left to right.

    Repeats are preserved. The whole match is the identifier even if the
    pattern has groups; zero-width matches are skipped.
    """
    if not message:
        return []
    return [m.group(0) for m in pattern.finditer(message) if m.group(0)]


# ============================================================================
# AGGREGATION
# ============================================================================


def commit_short_stat(commit: CommitRecord) -> CommitShortStat:
    added = 0
    deleted = 0
    for stat in commit.file_stats:
        added += stat.added
        deleted += stat.deleted
    return CommitShortStat(added=added, deleted=deleted)


class TicketStatAggregator:
    """
    Folds commits into per-ticket statistics, one commit at a time.

    Every ticket occurrence in a message is an attribution: a commit that
    mentions PROJ-1 twice adds its churn to PROJ-1 twice and bumps its
    commit count by two. Results keep first-seen order.
    """

    def __init__(self, ticket_pattern: Union[str, re.Pattern] = DEFAULT_TICKET_PATTERN):
        self.ticket_pattern = compile_ticket_pattern(ticket_pattern)
        self.data: Dict[str, TicketStat] = {}
        self.commits_processed = 0
        self.commits_with_tickets = 0

    def process_commit(self, commit: CommitRecord):
        self.commits_processed += 1

        tickets = extract_tickets(commit.message, self.ticket_pattern)
        if not tickets:
            return
        self.commits_with_tickets += 1

        short_stat = commit_short_stat(commit)
        for ticket in tickets:
            ticket_stat = self.data.get(ticket)
            if ticket_stat is None:
                ticket_stat = self.data[ticket] = TicketStat.empty(ticket)
            ticket_stat.record(short_stat)

    def process_commits(self, commits: Iterable[CommitRecord]):
        for commit in commits:
            self.process_commit(commit)

    def finalize(self) -> Dict[str, TicketStat]:
        return self.data


def aggregate_commits(
    commits: Iterable[CommitRecord],
    ticket_pattern: Union[str, re.Pattern] = DEFAULT_TICKET_PATTERN,
) -> Dict[str, TicketStat]:
    """Aggregate a commit sequence into {ticket: TicketStat}"""
    aggregator = TicketStatAggregator(ticket_pattern)
    aggregator.process_commits(commits)
    return aggregator.finalize()


def merge_ticket_stats(*partials: Dict[str, TicketStat]) -> Dict[str, TicketStat]:
    """
    Merge partial aggregation results pointwise.

    Aggregating contiguous chunks of a commit sequence and merging the
    chunk results gives the same numbers as aggregating the whole
    sequence. Inputs are not modified.
    """
    merged: Dict[str, TicketStat] = {}
    for partial in partials:
        for ticket, ticket_stat in partial.items():
            current = merged.get(ticket, TicketStat.empty(ticket))
            merged[ticket] = current.merge(ticket_stat)
    return merged


# ============================================================================
# REPORT OUTPUT
# ============================================================================


def sort_statistics(
    statistics: Iterable[TicketStat], sort_by: str = "first-seen"
) -> List[TicketStat]:
    """Order report rows; sorted() is stable so ties keep first-seen order"""
    rows = list(statistics)
    if sort_by == "first-seen":
        return rows
    if sort_by == "ticket":
        return sorted(rows, key=lambda s: s.ticket)
    if sort_by == "total":
        return sorted(rows, key=lambda s: s.total, reverse=True)
    if sort_by == "commits":
        return sorted(rows, key=lambda s: s.commits, reverse=True)
    raise ConfigurationError(f"Unknown sort order: {sort_by}")


def resolve_output_path(output_path: str) -> str:
    """An existing directory gets the default report file name appended"""
    if os.path.isdir(output_path):
        return os.path.join(output_path, DEFAULT_FILE_NAME)
    return output_path


def _report_file_mode(output_path: str) -> int:
    """Mode a plain open() would leave: the existing file's, else 0666 & ~umask"""
    try:
        return stat.S_IMODE(os.stat(output_path).st_mode)
    except FileNotFoundError:
        umask = os.umask(0)
        os.umask(umask)
        return 0o666 & ~umask


def save_statistics_as_csv(
    statistics: Union[Dict[str, TicketStat], Iterable[TicketStat]],
    output_path: str,
    sort_by: str = "first-seen",
) -> int:
    """
    Write ticket statistics as CSV and return the number of rows written.

    The report is written to a temporary file next to output_path and
    moved into place, so the destination is either fully replaced or
    left untouched.

    Raises:
        SinkError: the destination directory or file cannot be written
    """
    if isinstance(statistics, dict):
        statistics = statistics.values()
    rows = sort_statistics(statistics, sort_by)

    output_dir = os.path.dirname(os.path.abspath(output_path))
    tmp_path = None
    try:
        os.makedirs(output_dir, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            prefix=".gitticketstat-", suffix=".csv.tmp", dir=output_dir
        )
        with os.fdopen(fd, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=[key for key, _ in CSV_HEADER])
            writer.writerow({key: title for key, title in CSV_HEADER})
            for ticket_stat in rows:
                writer.writerow(ticket_stat.to_dict())
        os.chmod(tmp_path, _report_file_mode(output_path))
        os.replace(tmp_path, output_path)
        tmp_path = None
    except OSError as e:
        raise SinkError(f"Failed to write report to {output_path}: {e}") from e
    finally:
        if tmp_path and os.path.exists(tmp_path):
            os.remove(tmp_path)

    return len(rows)


# ============================================================================
# PIPELINE
# ============================================================================


def analyze_repository(
    repo_path: str, settings: Settings, reporter: Optional[ProgressReporter] = None
) -> TicketStatAggregator:
    """
    Read history from repo_path and aggregate it.

    Raises:
        SourceUnavailableError, ParseError
    """
    reporter = reporter or ProgressReporter(quiet=True)
    source = GitHistorySource(repo_path)

    reporter.stage_start("Git Log Processing", f"Reading history of {source.repo_path}")
    log_text = source.read_log()
    for message in source.warnings:
        reporter.warning(f"git: {message}")

    aggregator = TicketStatAggregator(settings.ticket_pattern)
    progress_bar = reporter.create_progress_bar(
        total=source.count_commits(), desc="Analyzing commits"
    )
    try:
        for commit in parse_numstat_log(log_text):
            aggregator.process_commit(commit)
            if progress_bar:
                progress_bar.update(1)
    finally:
        if progress_bar:
            progress_bar.close()

    reporter.stage_complete(
        "Git Log Processing",
        {
            "Commits processed": f"{aggregator.commits_processed:,}",
            "Commits with tickets": f"{aggregator.commits_with_tickets:,}",
            "Tickets found": f"{len(aggregator.data):,}",
        },
    )
    return aggregator


# ============================================================================
# CLI INTERFACE
# ============================================================================


@click.command(context_settings=dict(help_option_names=["-h", "--help"]))
@click.argument(
    "repo_path",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    required=False,
)
@click.argument("output_path", type=click.Path(), required=False)
@click.option(
    "--ticket-pattern",
    help=f"Regular expression matching ticket identifiers (default: {DEFAULT_TICKET_PATTERN})",
)
@click.option(
    "--sort",
    type=click.Choice(SORT_ORDERS),
    help="Row order of the report (default: first-seen)",
)
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    help="Configuration file path (.yaml or .json)",
)
# Output Control
@click.option(
    "-q", "--quiet", is_flag=True, default=None, help="Suppress progress output"
)
@click.option(
    "-v",
    "--verbose",
    is_flag=True,
    default=None,
    help="Show detailed progress information",
)
@click.option("--no-color", is_flag=True, default=None, help="Disable colored output")
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show resolved settings without reading history",
)
@click.version_option(version=VERSION, prog_name="gitticketstat")
def main(repo_path, output_path, config, **kwargs):
    """
    Git Ticket Statistics

    Sum lines added, lines deleted and commits per ticket mentioned in the
    commit messages of REPO_PATH and write them as CSV to OUTPUT_PATH.
    OUTPUT_PATH may be a directory, in which case gitticketstat.csv is
    created inside it.
    """
    if not repo_path or not output_path:
        ctx = click.get_current_context()
        click.echo(ctx.get_help())
        ctx.exit(2)

    dry_run = kwargs.pop("dry_run", False)
    startup_reporter = ProgressReporter(
        quiet=bool(kwargs.get("quiet")), use_colors=not kwargs.get("no_color")
    )

    try:
        resolver = ConfigResolver(kwargs, config, repo_path, reporter=startup_reporter)
        settings = Settings.from_resolver(resolver)
    except (OSError, ConfigurationError) as e:
        startup_reporter.error(str(e))
        sys.exit(1)

    reporter = ProgressReporter(
        quiet=settings.quiet, verbose=settings.verbose, use_colors=settings.use_colors
    )
    if resolver.config_source:
        reporter.info(f"Using configuration: {resolver.config_source}")

    output_file = resolve_output_path(output_path)

    if dry_run:
        reporter.info("DRY RUN MODE - No history will be read")
        reporter.info(f"Repository: {repo_path}")
        reporter.info(f"Output file: {output_file}")
        reporter.info(f"Ticket pattern: {settings.ticket_pattern.pattern}")
        reporter.info(f"Sort order: {settings.sort_by}")
        return

    try:
        aggregator = analyze_repository(repo_path, settings, reporter)

        reporter.stage_start("Export", f"Writing {output_file}")
        rows = save_statistics_as_csv(
            aggregator.finalize(), output_file, sort_by=settings.sort_by
        )
        reporter.stage_complete(
            "Export",
            {"File": output_file, "Size": f"{os.path.getsize(output_file):,} bytes"},
        )

        reporter.summary(
            {
                "Repository": repo_path,
                "Ticket pattern": settings.ticket_pattern.pattern,
                "Commits processed": f"{aggregator.commits_processed:,}",
                "Commits with tickets": f"{aggregator.commits_with_tickets:,}",
                "Tickets": f"{rows:,}",
            }
        )
        reporter.success(f"Report saved to: {output_file}")

    except TicketStatError as e:
        reporter.error(str(e))
        if settings.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
