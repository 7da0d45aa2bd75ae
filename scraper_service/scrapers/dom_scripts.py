"""Functions evaluated inside the page. They only read the DOM and return plain data."""

SCROLL_TO_BOTTOM = "() => window.scrollTo(0, document.body.scrollHeight)"
SCROLL_TO_TOP = "() => window.scrollTo(0, 0)"

_DESCRIBE_IMAGE = """
const describeImage = (el) => ({
  src: el.src || el.getAttribute('src') || null,
  currentSrc: el.currentSrc || null,
  dataSrc: el.getAttribute('data-src') || (el.dataset ? el.dataset.src : null) || null,
  dataLazy: el.getAttribute('data-lazy') || null,
  dataOriginal: el.getAttribute('data-original') || null,
  complete: el.complete === undefined ? true : el.complete,
  naturalWidth: el.naturalWidth === undefined ? null : el.naturalWidth,
});
"""

LISTING_CARDS_SCRIPT = (
    "(cfg) => {"
    + _DESCRIBE_IMAGE
    + """
  return Array.from(document.querySelectorAll(cfg.linkSelector)).map((link) => {
    const card = cfg.cardSelector ? (link.closest(cfg.cardSelector) || link) : link;
    return {
      url: link.href,
      images: Array.from(card.querySelectorAll('img')).map(describeImage),
    };
  });
}"""
)

DETAIL_SNAPSHOT_SCRIPT = (
    "(cfg) => {"
    + _DESCRIBE_IMAGE
    + """
  const clean = (txt) => (txt || '').replace(/\\s+/g, ' ').trim();
  const safeAll = (sel) => {
    if (!sel) return [];
    try { return Array.from(document.querySelectorAll(sel)); } catch (e) { return []; }
  };
  const textOf = (sel) => {
    const el = safeAll(sel)[0];
    return el ? clean(el.textContent) : '';
  };
  const listTexts = (sel) => safeAll(sel).map((el) => clean(el.textContent));
  const labelPairs = (sel) => safeAll(sel).map((el) => {
    const value = el.nextElementSibling;
    return clean(el.textContent) + ' : ' + (value ? clean(value.textContent) : '');
  });

  const texts = {};
  for (const [name, selectors] of Object.entries(cfg.fields || {})) {
    texts[name] = selectors.map(textOf);
  }
  const sections = {};
  for (const [name, sel] of Object.entries(cfg.sections || {})) {
    sections[name] = listTexts(sel);
  }
  const extras = {};
  for (const [name, target] of Object.entries(cfg.extras || {})) {
    const [sel, attr] = target.split('@');
    const el = safeAll(sel)[0];
    extras[name] = el ? (attr ? (el.getAttribute(attr) || '') : clean(el.textContent)) : '';
  }
  const seen = new Set();
  const images = [];
  for (const sel of cfg.imageSelectors || []) {
    for (const el of safeAll(sel)) {
      if (seen.has(el)) continue;
      seen.add(el);
      images.push(describeImage(el));
    }
  }
  return {
    texts,
    items: listTexts(cfg.listItemSelector).concat(labelPairs(cfg.labelSelector)),
    sections,
    extras,
    breadcrumbs: listTexts(cfg.breadcrumbSelector),
    images,
  };
}"""
)
