# tests/conftest.py
"""
Pytest configuration and shared fixtures for linktriage tests

The `export_dir` fixture writes a miniature extracted course export:

    imsmanifest.xml                  --TOP-- > Course Content > Week 1 > {res00004, res00005}
    res00004.dat                     plain content item with three links
    res00005.dat                     file item linking page.html into the course
    res00006.dat                     announcement (never scanned)
    res00007.dat                     assessment "Test: Midterm"
    res00008.dat                     malformed XML
    csfiles/home_dir/courses/ABC101/syllabus.pdf(.xml)
    csfiles/home_dir/unitA/page.html(.xml)     identifier 100#...
    csfiles/home_dir/unitB/page.html(.xml)     identifier 200#...
    csfiles/home_dir/orphan.html              not linked by any item
"""
import shutil
import sys
import zipfile
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from linktriage.models import ContentItem, ContentType


SECTION = "/courses/2024-NAU01-ABC-101-SEC01-12345.NAU-PSSIS"

MANIFEST = """<?xml version="1.0" encoding="UTF-8"?>
<manifest identifier="man00001" xmlns:bb="http://www.blackboard.com/content-packaging/">
  <organizations default="toc00001">
    <organization identifier="toc00001">
      <item identifier="itm00001" identifierref="res00001">
        <title>--TOP--</title>
        <item identifier="itm00002" identifierref="res00002">
          <title>Course Content</title>
          <item identifier="itm00003" identifierref="res00003">
            <title>Week 1</title>
            <item identifier="itm00004" identifierref="RES00004">
              <title>Syllabus Page</title>
            </item>
            <item identifier="itm00005" identifierref="res00005">
              <title>Reading Link</title>
            </item>
          </item>
        </item>
      </item>
    </organization>
  </organizations>
  <resources/>
</manifest>
"""

CONTENT_DAT = """<?xml version="1.0" encoding="UTF-8"?>
<CONTENT id="_100_1">
  <TITLE value="Syllabus"/>
  <BODY>
    <TEXT>&lt;p&gt;&lt;a href="/courses/1/ABC101/syllabus.pdf"&gt;Syllabus&lt;/a&gt; &lt;a href="https://www.google.com"&gt;Google&lt;/a&gt; &lt;img src="@X@EmbeddedFile.requestUrlStub@X@bbcswebdav/xid-123456_1" alt="Logo"&gt;&lt;/p&gt;</TEXT>
    <TYPE value="H"/>
  </BODY>
  <CONTENTHANDLER value="resource/x-bb-document"/>
</CONTENT>
"""

FILE_DAT = """<?xml version="1.0" encoding="UTF-8"?>
<CONTENT id="_101_1">
  <TITLE value="Reading Link"/>
  <BODY><TEXT></TEXT></BODY>
  <CONTENTHANDLER value="resource/x-bb-file"/>
  <FILES>
    <FILE id="_5_1">
      <NAME>/unitA/page.html</NAME>
      <LINKNAME value="page.html"/>
    </FILE>
  </FILES>
</CONTENT>
"""

ANNOUNCEMENT_DAT = """<?xml version="1.0" encoding="UTF-8"?>
<ANNOUNCEMENT id="_7_1">
  <TITLE value="Welcome"/>
  <DESCRIPTION>
    <TEXT>&lt;a href="/courses/1/welcome.html"&gt;Start here&lt;/a&gt;</TEXT>
  </DESCRIPTION>
</ANNOUNCEMENT>
"""

ASSESSMENT_DAT = """<?xml version="1.0" encoding="UTF-8"?>
<questestinterop>
  <assessment title="Midterm">
    <assessmentmetadata>
      <bbmd_assessmenttype>Test</bbmd_assessmenttype>
    </assessmentmetadata>
    <presentation_material>
      <flow_mat class="FORMATTED_TEXT_BLOCK"><material><mat_extension><mat_formattedtext type="HTML">&lt;img src="ppg/test1.htm" alt="diagram"&gt;</mat_formattedtext></mat_extension></material></flow_mat>
    </presentation_material>
  </assessment>
</questestinterop>
"""

BROKEN_DAT = """<?xml version="1.0" encoding="UTF-8"?>
<CONTENT><TITLE value="Broken"></CONTENT
"""

PAGE_A = '<html><body><a href="../unitB/page.html">Next</a> <a href="mailto:help@nau.edu">Help</a></body></html>'
PAGE_B = '<html>\n<body>\n<p>No links here.</p>\n</body>\n</html>\n'
ORPHAN = ('<html><body><a href="https://bblearn.nau.edu/webapps/blackboard/execute/content/file?cmd=view">'
          'Old copy</a></body></html>')


def collection_metadata(identifier: str) -> str:
    return (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<lom xmlns="http://ltsc.ieee.org/xsd/LOM"><general>'
        f'<identifier>{identifier}</identifier>'
        '</general></lom>\n'
    )


def write_export(root: Path) -> Path:
    root.mkdir(parents=True, exist_ok=True)
    (root / "imsmanifest.xml").write_text(MANIFEST, encoding="utf-8")
    (root / "res00004.dat").write_text(CONTENT_DAT, encoding="utf-8")
    (root / "res00005.dat").write_text(FILE_DAT, encoding="utf-8")
    (root / "res00006.dat").write_text(ANNOUNCEMENT_DAT, encoding="utf-8")
    (root / "res00007.dat").write_text(ASSESSMENT_DAT, encoding="utf-8")
    (root / "res00008.dat").write_text(BROKEN_DAT, encoding="utf-8")

    home = root / "csfiles" / "home_dir"
    (home / "courses" / "ABC101").mkdir(parents=True)
    (home / "unitA").mkdir(parents=True)
    (home / "unitB").mkdir(parents=True)

    (home / "courses" / "ABC101" / "syllabus.pdf").write_bytes(b"%PDF-1.4")
    (home / "courses" / "ABC101" / "syllabus.pdf.xml").write_text(
        collection_metadata("555555_1#/courses/ABC101/syllabus.pdf"), encoding="utf-8")

    (home / "unitA" / "page.html").write_text(PAGE_A, encoding="utf-8")
    (home / "unitA" / "page.html.xml").write_text(
        collection_metadata(f"100#{SECTION}/unitA/page.html"), encoding="utf-8")
    (home / "unitB" / "page.html").write_text(PAGE_B, encoding="utf-8")
    (home / "unitB" / "page.html.xml").write_text(
        collection_metadata(f"200#{SECTION}/unitB/page.html"), encoding="utf-8")

    (home / "orphan.html").write_text(ORPHAN, encoding="utf-8")
    return root


@pytest.fixture
def export_dir(tmp_path: Path) -> Path:
    """An extracted, already-sanitized course export"""
    return write_export(tmp_path / "export")


@pytest.fixture
def export_archive(tmp_path: Path) -> Path:
    """The same export zipped, with LMS x-id suffixes on collection names"""
    staging = write_export(tmp_path / "staging")
    home = staging / "csfiles" / "home_dir"
    (home / "orphan.html").rename(home / "orphan__xid-9876543_1.html")
    (home / "unitB").rename(home / "unitB__xid-1234567_1")

    archive = tmp_path / "ExportFile_ABC101_20240101.zip"
    with zipfile.ZipFile(archive, "w") as zf:
        for path in sorted(staging.rglob("*")):
            if path.is_file():
                zf.write(path, path.relative_to(staging).as_posix())
    shutil.rmtree(staging)
    return archive


@pytest.fixture
def page_item() -> ContentItem:
    return ContentItem(item_id="res00010", title="Page")


@pytest.fixture
def assessment_item() -> ContentItem:
    return ContentItem(item_id="res00011", title="Test: Quiz", content_type=ContentType.ASSESSMENT)
