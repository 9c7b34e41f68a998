import pytest
import subprocess
from gitticketstat import CommitRecord, FileStat, ProgressReporter


@pytest.fixture
def quiet_reporter():
    return ProgressReporter(quiet=True)


@pytest.fixture
def sample_commits():
    """Four commits: one with two tickets, one without, one repeating a ticket."""
    return [
        CommitRecord(
            message="fix PROJ-1",
            file_stats=(FileStat(5, 2, "src/main.py"),),
            commit_hash="aaa111",
        ),
        CommitRecord(
            message="PROJ-1 and PROJ-2",
            file_stats=(FileStat(1, 0, "src/utils.py"),),
            commit_hash="bbb222",
        ),
        CommitRecord(
            message="refactor without a ticket",
            file_stats=(FileStat(30, 30, "src/main.py"), FileStat(4, 0, "README.md")),
            commit_hash="ccc333",
        ),
        CommitRecord(
            message="OPS-7: revert OPS-7 hotfix",
            file_stats=(FileStat(3, 4, "deploy.yml"), FileStat(0, 0, "logo.png")),
            commit_hash="ddd444",
        ),
    ]


def make_log_record(commit_hash, message, numstat_lines, timestamp=1_700_000_000,
                    author="Alice Smith", email="alice@example.com"):
    """Render one commit the way `git log --numstat --format=LOG_FORMAT` does."""
    header = f"\x1e{commit_hash}\x00{timestamp}\x00{author}\x00{email}\x00{message}\n\x1f\n"
    if numstat_lines:
        header += "\n" + "\n".join(numstat_lines) + "\n"
    return header


@pytest.fixture
def git_repo(tmp_path):
    repo = tmp_path / "repo"
    repo.mkdir()

    def run(*args):
        subprocess.run(["git", "-C", str(repo)] + list(args),
                       check=True, capture_output=True)

    run("init")
    run("config", "user.email", "tester@test.com")
    run("config", "user.name",  "Tester")
    run("config", "commit.gpgsign", "false")

    # Commit 1 - add two files (+2 -0)
    (repo / "app.py").write_text("print('hello')\n", encoding='utf-8')
    (repo / "lib.py").write_text("def helper(): pass\n", encoding='utf-8')
    run("add", ".")
    run("commit", "-m", "PROJ-1 initial")

    # Commit 2 - modify both (+2 -1)
    (repo / "app.py").write_text("print('hello')\nprint('world')\n", encoding='utf-8')
    (repo / "lib.py").write_text("def helper(): return 1\n", encoding='utf-8')
    run("add", ".")
    run("commit", "-m", "PROJ-1 PROJ-2 update both")

    # Commit 3 - no ticket (+1 -0)
    (repo / "readme.md").write_text("# App\n", encoding='utf-8')
    run("add", ".")
    run("commit", "-m", "add readme")

    # Commit 4 - ticket mentioned twice (+1 -0)
    (repo / "app.py").write_text("print('hello')\nprint('world')\nprint('!')\n", encoding='utf-8')
    run("add", ".")
    run("commit", "-m", "Fix PROJ-2", "-m", "Follow-up for PROJ-2")

    return str(repo)


@pytest.fixture
def empty_git_repo(tmp_path):
    repo = tmp_path / "empty"
    repo.mkdir()
    subprocess.run(["git", "-C", str(repo), "init"], check=True, capture_output=True)
    return str(repo)
