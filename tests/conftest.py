import struct
import zipfile

import pytest

CONTENT_TYPES = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<Types xmlns="http://schemas.openxmlformats.org/package/2006/content-types">'
    '<Default Extension="xml" ContentType="application/xml"/></Types>'
)

PROTECTED_WORKBOOK = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">'
    '<workbookProtection lockStructure="1"/>'
    '<sheets>'
    '<sheet name="Visible" sheetId="1" r:id="rId1"/>'
    '<sheet name="Secret" state="hidden" sheetId="2" r:id="rId2"/>'
    '</sheets></workbook>'
)

PLAIN_WORKBOOK = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\r\n'
    '<workbook xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main" '
    'xmlns:r="http://schemas.openxmlformats.org/officeDocument/2006/relationships">\r\n'
    '<sheets><sheet name="Only" sheetId="1" r:id="rId1"/></sheets></workbook>'
)

PROTECTED_SHEET = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
    '<sheetData/><sheetProtection password="abc" sheet="1"/></worksheet>'
)

PLAIN_SHEET = (
    '<?xml version="1.0" encoding="UTF-8" standalone="yes"?>\n'
    '<worksheet xmlns="http://schemas.openxmlformats.org/spreadsheetml/2006/main">'
    '<sheetData><row r="1"><c r="A1"><v>42</v></c></row></sheetData></worksheet>'
)


def write_zip(path, entries):
    with zipfile.ZipFile(path, 'w', zipfile.ZIP_DEFLATED) as zf:
        for name, data in entries.items():
            zf.writestr(name, data)
    return path


def corrupt_entry(path, name):
    """覆盖某个条目的压缩数据开头，中央目录保持完好"""
    with zipfile.ZipFile(path) as zf:
        offset = zf.getinfo(name).header_offset
    raw = bytearray(path.read_bytes())
    name_len, extra_len = struct.unpack('<HH', raw[offset + 26:offset + 30])
    start = offset + 30 + name_len + extra_len
    raw[start:start + 8] = b'\xff' * 8
    path.write_bytes(bytes(raw))
    return path


def read_zip(path):
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


@pytest.fixture
def protected_entries():
    return {
        '[Content_Types].xml': CONTENT_TYPES,
        'xl/workbook.xml': PROTECTED_WORKBOOK,
        'xl/worksheets/sheet1.xml': PROTECTED_SHEET,
        'xl/worksheets/sheet2.xml': PLAIN_SHEET,
        'docProps/app.xml': '<Properties/>',
    }


@pytest.fixture
def plain_entries():
    return {
        '[Content_Types].xml': CONTENT_TYPES,
        'xl/workbook.xml': PLAIN_WORKBOOK,
        'xl/worksheets/sheet1.xml': PLAIN_SHEET,
    }


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """在临时目录中运行，工作目录和输出都落在这里"""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def protected_xlsx(workspace, protected_entries):
    return write_zip(workspace / 'report.xlsx', protected_entries)


@pytest.fixture
def plain_xlsx(workspace, plain_entries):
    return write_zip(workspace / 'plain.xlsx', plain_entries)
