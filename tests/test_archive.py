import os
import zipfile

import pytest

from unpro.archive import (
    safe_entry_path, extract_archive, build_archive, cleanup, walk_files, is_encrypted,
)
from unpro.errors import ExtractError, BuildError, CleanupError

from conftest import write_zip, read_zip, corrupt_entry


@pytest.mark.parametrize('name, expected', [
    ('xl/workbook.xml', 'xl/workbook.xml'),
    ('xl/', 'xl'),
    ('./xl//a.xml', 'xl/a.xml'),
    ('a/../b.xml', 'b.xml'),
    ('xl\\worksheets\\sheet1.xml', 'xl/worksheets/sheet1.xml'),
])
def test_safe_entry_path_accepts(name, expected):
    assert safe_entry_path(name).as_posix() == expected


@pytest.mark.parametrize('name', [
    '../evil.txt',
    'a/../../evil.txt',
    '/etc/passwd',
    'C:/windows/evil.txt',
    'bad\0name',
    '',
])
def test_safe_entry_path_rejects(name):
    assert safe_entry_path(name) is None


def test_extract_mirrors_entries(workspace, protected_xlsx, protected_entries):
    work_dir = extract_archive(protected_xlsx)

    assert work_dir.resolve() == (workspace / 'report').resolve()
    for name, data in protected_entries.items():
        assert (work_dir / name).read_bytes() == data.encode('utf-8')


def test_extract_creates_directory_entries(workspace):
    write_zip(workspace / 'dirs.xlsx', {'xl/media/': '', 'xl/workbook.xml': '<workbook/>'})

    work_dir = extract_archive(workspace / 'dirs.xlsx')

    assert (work_dir / 'xl' / 'media').is_dir()


def test_extract_skips_traversal_entries(workspace):
    archive = write_zip(workspace / 'sneaky.xlsx', {
        '../evil.txt': 'boom',
        'xl/workbook.xml': '<workbook/>',
    })
    skipped = []

    work_dir = extract_archive(archive, log=skipped.append)

    assert not (workspace / 'evil.txt').exists()
    assert (work_dir / 'xl' / 'workbook.xml').is_file()
    assert len(skipped) == 1 and '../evil.txt' in skipped[0]


def test_extract_missing_file(workspace):
    with pytest.raises(ExtractError) as exc:
        extract_archive(workspace / 'nope.xlsx')
    assert exc.value.stage == 'extract'
    assert not (workspace / 'nope').exists()


def test_extract_not_a_zip(workspace):
    bogus = workspace / 'locked.xlsx'
    bogus.write_bytes(b'\xd0\xcf\x11\xe0 not a zip archive')

    assert is_encrypted(bogus)
    with pytest.raises(ExtractError):
        extract_archive(bogus)


def test_extract_refuses_stale_work_dir(workspace, protected_xlsx):
    (workspace / 'report').mkdir()

    with pytest.raises(ExtractError) as exc:
        extract_archive(protected_xlsx)
    assert exc.value.path.name == 'report'


def test_build_uses_relative_posix_names(workspace, protected_xlsx, protected_entries):
    work_dir = extract_archive(protected_xlsx)

    out = build_archive(work_dir, workspace / 'out.xlsx')

    rebuilt = read_zip(out)
    assert set(rebuilt) == set(protected_entries)
    with zipfile.ZipFile(out) as zf:
        assert all(info.compress_type == zipfile.ZIP_DEFLATED for info in zf.infolist())


def test_build_unwritable_output(workspace, protected_xlsx):
    work_dir = extract_archive(protected_xlsx)

    with pytest.raises(BuildError):
        build_archive(work_dir, workspace / 'missing-dir' / 'out.xlsx')


def test_cleanup_removes_tree(workspace, protected_xlsx):
    work_dir = extract_archive(protected_xlsx)

    cleanup(work_dir)

    assert not work_dir.exists()


def test_cleanup_failure_is_raised(workspace, protected_xlsx, monkeypatch):
    work_dir = extract_archive(protected_xlsx)

    def refuse(path):
        raise PermissionError(13, 'in use', str(path))

    monkeypatch.setattr('unpro.archive.shutil.rmtree', refuse)

    with pytest.raises(CleanupError) as exc:
        cleanup(work_dir)
    assert isinstance(exc.value.cause, PermissionError)
    assert isinstance(exc.value.__cause__, PermissionError)


def test_walk_files_sorted(tmp_path):
    (tmp_path / 'b').mkdir()
    (tmp_path / 'b' / 'z.xml').write_text('z')
    (tmp_path / 'a.xml').write_text('a')

    files = [p.relative_to(tmp_path).as_posix() for p in walk_files(tmp_path)]

    assert files == ['a.xml', 'b/z.xml']


def test_walk_files_symlink_cycle_is_bounded(tmp_path):
    (tmp_path / 'sheets').mkdir()
    (tmp_path / 'sheets' / 'sheet1.xml').write_text('<worksheet/>')
    try:
        os.symlink(tmp_path / 'sheets', tmp_path / 'sheets' / 'loop', target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip('symlinks not available')

    followed = walk_files(tmp_path / 'sheets', follow_links=True, max_depth=3)
    not_followed = walk_files(tmp_path / 'sheets', follow_links=False)

    assert 1 < len(followed) <= 4
    assert [p.name for p in not_followed] == ['sheet1.xml']


def test_extract_corrupt_compressed_data(workspace, protected_xlsx):
    corrupt_entry(protected_xlsx, 'xl/workbook.xml')

    with pytest.raises(ExtractError) as exc:
        extract_archive(protected_xlsx)
    assert exc.value.path == protected_xlsx
    assert exc.value.cause is not None


def test_build_accepts_pre_1980_timestamps(workspace, protected_xlsx):
    work_dir = extract_archive(protected_xlsx)
    os.utime(work_dir / 'docProps' / 'app.xml', (0, 0))

    out = build_archive(work_dir, workspace / 'out.xlsx')

    with zipfile.ZipFile(out) as zf:
        assert zf.getinfo('docProps/app.xml').date_time[0] == 1980
