"""Summarize a page's structure to help tune a source's selectors."""
from typing import Any, Dict, List

from bs4 import BeautifulSoup

PROBE_SELECTORS = (
    '.event', '.show', '.concert', '.listing', '.item',
    '[class*="event"]', '[class*="show"]', '[class*="concert"]',
    '[class*="listing"]', '[class*="item"]'
)

CLASS_KEYWORDS = ('event', 'show', 'concert', 'date', 'venue', 'artist')

SAMPLE_LENGTH = 100


def _distinct_classes(soup: BeautifulSoup, keyword: str) -> List[str]:
    seen = []
    for element in soup.select(f'[class*="{keyword}" i]'):
        classes = ' '.join(element.get('class', []))
        if classes and classes not in seen:
            seen.append(classes)
    return seen


def inspect_page(html: str, url: str = '') -> Dict[str, Any]:
    """
    Report the candidate containers and class names found on a page.

    Args:
        html: Raw page content
        url: Page address, echoed back in the report

    Returns:
        Dictionary with title, size, matching probe selectors and the
        distinct class lists containing event-related keywords
    """
    soup = BeautifulSoup(html, 'html.parser')
    title = soup.title.get_text(strip=True) if soup.title else ''

    selectors = []
    for selector in PROBE_SELECTORS:
        elements = soup.select(selector)
        if elements:
            first = elements[0]
            selectors.append({
                'selector': selector,
                'count': len(elements),
                'sampleClasses': ' '.join(first.get('class', [])),
                'sampleText': first.get_text(' ', strip=True)[:SAMPLE_LENGTH]
            })

    return {
        'url': url,
        'title': title,
        'contentLength': len(html),
        'hasContent': len(html) > 1000,
        'potentialEventSelectors': selectors,
        'classes': {
            keyword: _distinct_classes(soup, keyword) for keyword in CLASS_KEYWORDS
        }
    }
