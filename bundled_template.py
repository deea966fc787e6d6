"""
bundled_template.py: Default technical SEO inspection checklist.

Loaded when no snapshot has been saved yet, and again on reset. Callers get
copies through bundled_rows(); BUNDLED_TEMPLATE itself is never mutated.
"""

import copy

# (inspection element, issue category, sub-category, skillset, implementer)
_ELEMENTS = [
    # 1- Accessibility
    ("Images missing alt text", "1- Accessibility", "Images", "HTML", "Site Editor"),
    ("Heading hierarchy (single H1, ordered H2-H6)", "1- Accessibility", "Headings", "HTML", "Developer"),
    ("Colour contrast of body text", "1- Accessibility", "Design", "CSS", "Developer"),
    ("Descriptive link anchor text", "1- Accessibility", "Links", "Content", "Site Editor"),
    ("Form fields have labels", "1- Accessibility", "Forms", "HTML", "Developer"),
    ("HTML lang attribute set", "1- Accessibility", "Markup", "HTML", "Developer"),
    ("Keyboard navigation and focus states", "1- Accessibility", "Interaction", "Front-end", "Developer"),
    # 2- Page Speed
    ("Largest Contentful Paint (LCP)", "2- Page Speed", "Core Web Vitals", "Front-end", "Developer"),
    ("Interaction to Next Paint (INP)", "2- Page Speed", "Core Web Vitals", "JavaScript", "Developer"),
    ("Cumulative Layout Shift (CLS)", "2- Page Speed", "Core Web Vitals", "CSS", "Developer"),
    ("Server response time (TTFB)", "2- Page Speed", "Server", "DevOps", "Developer"),
    ("Image compression and next-gen formats", "2- Page Speed", "Images", "Front-end", "Developer"),
    ("Render-blocking CSS and JavaScript", "2- Page Speed", "Resources", "Front-end", "Developer"),
    ("Browser caching headers", "2- Page Speed", "Server", "DevOps", "Developer"),
    ("Text compression (gzip / brotli)", "2- Page Speed", "Server", "DevOps", "Developer"),
    ("Lazy loading of offscreen images", "2- Page Speed", "Images", "Front-end", "Developer"),
    # 3- Mobile Condition
    ("Viewport meta tag", "3- Mobile Condition", "Markup", "HTML", "Developer"),
    ("Tap target size and spacing", "3- Mobile Condition", "Usability", "CSS", "Developer"),
    ("Content parity between mobile and desktop", "3- Mobile Condition", "Mobile-first indexing", "SEO", "Client/Developer"),
    ("Intrusive interstitials on mobile", "3- Mobile Condition", "Usability", "Front-end", "Client/Developer"),
    ("Legible font sizes on mobile", "3- Mobile Condition", "Usability", "CSS", "Developer"),
    # 4- Content
    ("Title tags (unique, 50-60 characters)", "4- Content", "Meta data", "SEO", "Site Editor"),
    ("Meta descriptions (unique, 150-160 characters)", "4- Content", "Meta data", "SEO", "Site Editor"),
    ("Duplicate content across URLs", "4- Content", "Duplication", "SEO", "Propellic"),
    ("Thin content pages", "4- Content", "Quality", "Content", "Client"),
    ("Canonical tags", "4- Content", "Duplication", "SEO", "Developer"),
    ("Structured data (Schema.org) coverage", "4- Content", "Structured data", "JSON-LD", "Developer"),
    ("Structured data validation errors", "4- Content", "Structured data", "JSON-LD", "Developer"),
    ("Keyword targeting and cannibalisation", "4- Content", "Keywords", "SEO", "Propellic"),
    ("E-E-A-T signals (authors, about, reviews)", "4- Content", "Quality", "Content", "Client"),
    # 5- Social
    ("Open Graph tags", "5- Social", "Meta data", "HTML", "Developer"),
    ("Twitter / X card tags", "5- Social", "Meta data", "HTML", "Developer"),
    ("Social profile links in Organization schema", "5- Social", "Structured data", "JSON-LD", "Developer"),
    ("Social share images (1200x630)", "5- Social", "Images", "Design", "Site Editor"),
    # 6- Link Issues
    ("Broken internal links (4xx)", "6- Link Issues", "Internal links", "SEO", "Site Editor"),
    ("Broken outbound links", "6- Link Issues", "External links", "SEO", "Site Editor"),
    ("Redirect chains and loops", "6- Link Issues", "Redirects", "DevOps", "Developer"),
    ("Internal links pointing to redirects", "6- Link Issues", "Internal links", "SEO", "Site Editor"),
    ("Orphan pages", "6- Link Issues", "Site architecture", "SEO", "Propellic"),
    ("Click depth of key pages", "6- Link Issues", "Site architecture", "SEO", "Propellic"),
    ("Nofollow on internal links", "6- Link Issues", "Internal links", "HTML", "Developer"),
    # 7- Other
    ("robots.txt directives", "7- Other", "Crawling", "SEO", "Developer"),
    ("XML sitemap present and submitted", "7- Other", "Crawling", "SEO", "Developer"),
    ("XML sitemap contains only 200, indexable URLs", "7- Other", "Crawling", "SEO", "Developer"),
    ("HTTPS everywhere and mixed content", "7- Other", "Security", "DevOps", "Developer"),
    ("www / non-www and trailing-slash consolidation", "7- Other", "Redirects", "DevOps", "Developer"),
    ("Hreflang annotations", "7- Other", "International", "SEO", "Developer"),
    ("Noindex on pages that should rank", "7- Other", "Indexing", "SEO", "Developer"),
    ("JavaScript rendering of primary content", "7- Other", "Rendering", "JavaScript", "Developer"),
    ("Custom 404 page returns 404 status", "7- Other", "Status codes", "DevOps", "Developer"),
    ("Faceted navigation and URL parameters", "7- Other", "Crawling", "SEO", "Client/Developer"),
    ("Search Console coverage errors", "7- Other", "Indexing", "SEO", "Propellic"),
    # 8- Local Search
    ("Google Business Profile completeness", "8- Local Search", "GBP", "Local SEO", "Client"),
    ("NAP consistency across site and citations", "8- Local Search", "Citations", "Local SEO", "Client"),
    ("LocalBusiness schema", "8- Local Search", "Structured data", "JSON-LD", "Developer"),
    ("Location landing pages", "8- Local Search", "Content", "Content", "Client"),
]

BUNDLED_TEMPLATE = [
    {
        "id": i,
        "inspectionElement": element,
        "issueCategory": category,
        "issueSubCategory": subcategory,
        "skillset": skillset,
        "analysis": "",
        "recommendations": "",
        "implementer": implementer,
        "score": "",
        "priority": "",
        "check": False,
    }
    for i, (element, category, subcategory, skillset, implementer) in enumerate(_ELEMENTS, start=1)
]


def bundled_rows() -> list[dict]:
    """Fresh deep copy of the bundled template."""
    return copy.deepcopy(BUNDLED_TEMPLATE)
