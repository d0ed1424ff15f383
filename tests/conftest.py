import sys
from pathlib import Path

import pytest
from bs4 import BeautifulSoup

# Ensure the package is importable when running pytest from the repository root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def _listing_row(name, *, detail_path, community="Vancouver - Westside", address="", facility_type="Restaurant", phone=""):
    return f"""
    <tr class="hovereffect" onclick="location.href='{detail_path}'">
      <td class="facilityName"> {name} </td>
      <td class="facilityType">{facility_type}</td>
      <td class="community">{community}</td>
      <td class="siteAddress">{address}</td>
      <td class="phoneNumber">{phone}</td>
    </tr>
    """


def _detail_html(inspections=(), *, outstanding_noncritical="0", outstanding_critical="0"):
    rows = "".join(
        f"""
        <tr class="hovereffect">
          <td class="inspectionDate">{date}</td>
          <td class="inspectionNumber">{number}</td>
          <td class="inspectionType">{reason}</td>
          <td class="criticalInfractionsCount">{critical}</td>
          <td class="nonCriticalInfractionsCount">{noncritical}</td>
        </tr>
        """
        for date, number, reason, critical, noncritical in inspections
    )
    return f"""
    <html><body>
      <table>
        <tr class="nozebrastripes">
          <td class="display-label">Outstanding Non-Critical Infractions</td>
          <td class="display-field"> {outstanding_noncritical} </td>
        </tr>
        <tr class="nozebrastripes">
          <td class="display-label">Outstanding Critical Infractions</td>
          <td class="display-field">{outstanding_critical}</td>
        </tr>
      </table>
      <table>{rows}</table>
    </body></html>
    """


@pytest.fixture
def make_listing_page():
    def _make(*rows):
        return BeautifulSoup(f"<html><body><table>{''.join(rows)}</table></body></html>", "html.parser")

    return _make


@pytest.fixture
def make_detail_page():
    def _make(inspections=(), **kwargs):
        return BeautifulSoup(_detail_html(inspections, **kwargs), "html.parser")

    return _make


@pytest.fixture
def listing_row():
    return _listing_row


@pytest.fixture
def detail_html():
    return _detail_html
