"""
EPG Parser Service.
Parses XMLTV guide data into programmes grouped by channel id.
"""
import xml.etree.ElementTree as ET
from datetime import datetime, timezone
import logging
from typing import Optional

from iptv_addon.errors import FormatError
from iptv_addon.models.epg import GuideIndex, Programme

logger = logging.getLogger(__name__)


class EPGParser:
    """Parse XMLTV format EPG data."""

    def index(self, xml_text: str | bytes) -> GuideIndex:
        """
        Group programmes by their channel attribute.

        Args:
            xml_text: XMLTV document

        Returns:
            Mapping of XMLTV channel id to programmes, in document order.
            Empty when the document has no programme entries.
        """
        try:
            root = ET.fromstring(xml_text)
        except ET.ParseError as e:
            raise FormatError(f"Invalid XMLTV document: {e}") from e

        guide: GuideIndex = {}
        skipped = 0

        for programme in root.iter('programme'):
            channel_id = programme.get('channel')
            start = programme.get('start')
            stop = programme.get('stop')

            if not all([channel_id, start, stop]):
                skipped += 1
                continue

            # Parse dates (XMLTV format: 20251212040000 +0000)
            try:
                start_dt = self._parse_xmltv_date(start)
                stop_dt = self._parse_xmltv_date(stop)
            except ValueError as e:
                logger.warning(f"Failed to parse date: {e}")
                skipped += 1
                continue

            guide.setdefault(channel_id, []).append(Programme(
                start=start_dt,
                stop=stop_dt,
                title=self._text(programme, 'title') or 'Unknown',
                desc=self._text(programme, 'desc'),
                category=self._text(programme, 'category'),
            ))

        total = sum(len(programmes) for programmes in guide.values())
        logger.info(f"Indexed {total} programmes for {len(guide)} channels ({skipped} skipped)")
        return guide

    def _text(self, element: ET.Element, tag: str) -> Optional[str]:
        child = element.find(tag)
        if child is None or child.text is None:
            return None
        return child.text.strip()

    def _parse_xmltv_date(self, date_str: str) -> datetime:
        """
        Parse XMLTV date format.
        Format: 20251212040000 +0000 or 20251212040000 (taken as UTC)
        """
        parts = date_str.split()
        if not parts:
            raise ValueError(f"empty XMLTV date {date_str!r}")
        parsed = datetime.strptime(parts[0][:14], '%Y%m%d%H%M%S')
        if len(parts) > 1:
            offset = datetime.strptime(parts[1], '%z').tzinfo
            return parsed.replace(tzinfo=offset)
        return parsed.replace(tzinfo=timezone.utc)
