"""JavaScript snippets evaluated inside the captured page (Playwright `page.evaluate`)."""

ELEMENT_EXISTS = "(sel) => !!document.querySelector(sel)"

SCROLL_INTO_VIEW = """
(sel) => {
    const el = document.querySelector(sel);
    if (!el) return false;
    el.scrollIntoView({ behavior: 'smooth', block: 'center', inline: 'center' });
    return true;
}
"""

SCROLL_BY_VIEWPORT = """
(factor) => window.scrollBy({ top: window.innerHeight * factor, behavior: 'smooth' })
"""

SCROLL_BY = "(step) => window.scrollBy(0, step)"

SCROLL_TO = "(y) => window.scrollTo(0, y)"

VIEWPORT_HEIGHT = "() => window.innerHeight"

DOCUMENT_HEIGHT = "() => document.documentElement.scrollHeight"

# Animated scroll with cubic ease-out, driven by requestAnimationFrame so it runs
# independently of the frame capture loop.
ANIMATE_SCROLL = """
({ distance, seconds }) => {
    const startY = window.scrollY;
    const startTime = performance.now();
    const total = seconds * 1000;
    function step() {
        const progress = Math.min((performance.now() - startTime) / total, 1);
        const eased = 1 - Math.pow(1 - progress, 3);
        window.scrollTo(0, startY + distance * eased);
        if (progress < 1) requestAnimationFrame(step);
    }
    requestAnimationFrame(step);
}
"""

HIGHLIGHT_ELEMENT = """
({ sel, glow }) => {
    const el = document.querySelector(sel);
    if (!el) return;
    const box = document.createElement('div');
    box.id = 'pro-director-highlight';
    box.style.cssText = `
        position: absolute;
        pointer-events: none;
        border: 3px solid #5b2bee;
        border-radius: 8px;
        ${glow ? 'box-shadow: 0 0 20px rgba(91, 43, 238, 0.6);' : ''}
        animation: pd-pulse 2s ease-in-out infinite;
        z-index: 10000;
    `;
    const rect = el.getBoundingClientRect();
    box.style.top = (rect.top + window.scrollY - 5) + 'px';
    box.style.left = (rect.left + window.scrollX - 5) + 'px';
    box.style.width = (rect.width + 10) + 'px';
    box.style.height = (rect.height + 10) + 'px';
    document.body.appendChild(box);
    if (!document.getElementById('pro-director-pulse')) {
        const style = document.createElement('style');
        style.id = 'pro-director-pulse';
        style.textContent = `
            @keyframes pd-pulse {
                0%, 100% { opacity: 0.7; transform: scale(1); }
                50% { opacity: 1; transform: scale(1.02); }
            }
        `;
        document.head.appendChild(style);
    }
}
"""

MOVE_CURSOR = """
(sel) => {
    const el = document.querySelector(sel);
    if (!el) return;
    const rect = el.getBoundingClientRect();
    const x = rect.left + rect.width / 2;
    const y = rect.top + rect.height / 2;
    let cursor = document.getElementById('pro-director-cursor');
    if (!cursor) {
        cursor = document.createElement('div');
        cursor.id = 'pro-director-cursor';
        cursor.style.cssText = `
            position: fixed;
            width: 28px;
            height: 28px;
            background: url("data:image/svg+xml,%3Csvg xmlns='http://www.w3.org/2000/svg' width='24' height='24' viewBox='0 0 24 24' fill='white' stroke='%235b2bee' stroke-width='2'%3E%3Cpath d='M3 3l7.07 16.97 2.51-7.39 7.39-2.51L3 3z'/%3E%3C/svg%3E") no-repeat;
            z-index: 2147483647;
            pointer-events: none;
            transition: transform 0.8s cubic-bezier(0.34, 1.56, 0.64, 1);
            transform: translate(-100px, -100px);
            filter: drop-shadow(0 2px 4px rgba(0,0,0,0.3));
        `;
        document.body.appendChild(cursor);
    }
    setTimeout(() => { cursor.style.transform = `translate(${x}px, ${y}px)`; }, 10);
}
"""

CLICK_RIPPLE = """
(sel) => {
    const el = document.querySelector(sel);
    if (!el) return;
    const rect = el.getBoundingClientRect();
    const ripple = document.createElement('div');
    ripple.style.cssText = `
        position: fixed;
        top: ${rect.top + rect.height / 2}px;
        left: ${rect.left + rect.width / 2}px;
        width: 10px;
        height: 10px;
        background: rgba(91, 43, 238, 0.4);
        border: 2px solid #5b2bee;
        border-radius: 50%;
        pointer-events: none;
        z-index: 2147483646;
        transform: translate(-50%, -50%);
        animation: pd-ripple-out 0.6s ease-out forwards;
    `;
    if (!document.getElementById('pro-director-animations')) {
        const style = document.createElement('style');
        style.id = 'pro-director-animations';
        style.textContent = `
            @keyframes pd-ripple-out {
                0% { width: 10px; height: 10px; opacity: 1; border-width: 4px; }
                100% { width: 100px; height: 100px; opacity: 0; border-width: 1px; }
            }
        `;
        document.head.appendChild(style);
    }
    document.body.appendChild(ripple);
    setTimeout(() => ripple.remove(), 700);
}
"""

DISMISS_POPUPS = """
() => {
    const closeSelectors = [
        'button[aria-label*="close" i]',
        'button[aria-label*="dismiss" i]',
        'button[title*="close" i]',
        'button.close',
        'button.modal-close',
        '[class*="close-button"]',
        '[class*="close-btn"]',
        '[data-dismiss="modal"]',
        '#onetrust-accept-btn-handler',
        '.cookie-accept',
        '.cookie-consent-accept',
    ];
    let clicked = 0;
    for (const selector of closeSelectors) {
        for (const btn of document.querySelectorAll(selector)) {
            const rect = btn.getBoundingClientRect();
            if (rect.width > 0 && rect.height > 0) { btn.click(); clicked++; }
        }
    }
    let removed = 0;
    const overlays = '.modal, .modal-backdrop, .overlay, [role="dialog"], [class*="modal"], [class*="popup"], [class*="overlay"]';
    for (const el of document.querySelectorAll(overlays)) {
        const style = window.getComputedStyle(el);
        if (style.position === 'fixed' && parseInt(style.zIndex) > 100) { el.remove(); removed++; }
    }
    for (const el of document.querySelectorAll('[class*="backdrop"], [class*="mask"]')) { el.remove(); removed++; }
    document.dispatchEvent(new KeyboardEvent('keydown', { key: 'Escape', keyCode: 27 }));
    document.dispatchEvent(new KeyboardEvent('keyup', { key: 'Escape', keyCode: 27 }));
    document.body.style.overflow = 'auto';
    document.documentElement.style.overflow = 'auto';
    return { clicked, removed };
}
"""

PAGE_METADATA = """
() => {
    const meta = (name) => {
        const el = document.querySelector(`meta[name="${name}"], meta[property="${name}"]`);
        return el ? el.getAttribute('content') || '' : '';
    };
    return {
        title: document.title || 'Untitled',
        description: meta('description') || meta('og:description'),
        h1: (document.querySelector('h1')?.textContent || '').trim(),
    };
}
"""

# Shared helpers prepended to the observer scripts.
_HELPERS = """
    const cleanText = (el) => (el?.textContent || '').trim().replace(/\\s+/g, ' ');
    const isVisible = (el) => {
        if (!el) return false;
        const rect = el.getBoundingClientRect();
        const style = window.getComputedStyle(el);
        return rect.width > 0 && rect.height > 0 && style.display !== 'none' && style.visibility !== 'hidden';
    };
    const selectorFor = (el, idx) => {
        if (!el) return 'body';
        if (el.id) return `#${CSS.escape(el.id)}`;
        const name = el.getAttribute('name');
        if (name) return `[name="${name}"]`;
        const aria = el.getAttribute('aria-label');
        if (aria) return `[aria-label="${aria}"]`;
        const cls = typeof el.className === 'string'
            ? el.className.split(/\\s+/).find(c => c.length > 2 && !c.includes('active') && !c.includes(':'))
            : null;
        if (cls) return `${el.tagName.toLowerCase()}.${CSS.escape(cls)}`;
        return `${el.tagName.toLowerCase()}:nth-of-type(${idx + 1})`;
    };
"""

SEMANTIC_SNAPSHOT = (
    "() => {"
    + _HELPERS
    + """
    const hero = { headline: '', subheadline: '', cta: null };
    const h1 = Array.from(document.querySelectorAll('h1')).filter(isVisible)[0];
    if (h1) {
        hero.headline = cleanText(h1);
        const parent = h1.parentElement || document.body;
        const sub = parent.querySelector('p, h2, h3');
        if (sub) hero.subheadline = cleanText(sub);
        const btn = parent.querySelector('a[class*="button"], button, a[class*="cta"]');
        if (btn && isVisible(btn)) hero.cta = { text: cleanText(btn), action: btn.getAttribute('href') || 'click' };
    }

    const valueProps = [];
    Array.from(document.querySelectorAll('section, div[class], article'))
        .filter(s => isVisible(s) && s.querySelector('h1, h2, h3, h4') && s.querySelector('p, span, div')
            && s.offsetHeight > 50 && s.offsetHeight < 2000)
        .slice(0, 10)
        .forEach(section => {
            const heading = section.querySelector('h1, h2, h3, h4');
            const desc = section.querySelector('p') || section.querySelector('span');
            if (heading && cleanText(heading).length > 3) {
                valueProps.push({
                    title: cleanText(heading).substring(0, 80),
                    description: desc ? cleanText(desc).substring(0, 150) : '',
                });
            }
        });

    const painPoints = [];
    const problemWords = ['problem', 'challenge', 'pain', 'difficult', 'struggle', 'issue'];
    Array.from(document.querySelectorAll('section, div'))
        .filter(s => { const t = cleanText(s).toLowerCase(); return t.length < 500 && problemWords.some(k => t.includes(k)); })
        .slice(0, 3)
        .forEach(section => {
            const heading = section.querySelector('h2, h3, strong');
            if (heading) painPoints.push({ text: cleanText(heading) });
        });

    const testimonials = [];
    document.querySelectorAll('[class*="testimonial"], [class*="review"], [class*="quote"]').forEach((el, idx) => {
        if (idx >= 3 || !isVisible(el)) return;
        const text = cleanText(el);
        const author = el.querySelector('[class*="author"], [class*="name"], cite');
        if (text.length > 20) testimonials.push({ text: text.substring(0, 150), author: author ? cleanText(author) : 'Customer' });
    });

    const metrics = [];
    document.querySelectorAll('[class*="stat"], [class*="metric"], [class*="number"]').forEach((el, idx) => {
        if (idx >= 4 || !isVisible(el)) return;
        const text = cleanText(el);
        if (/\\d+[KMB%+]/.test(text) || /\\$\\d+/.test(text)) {
            metrics.push({ value: text, label: cleanText(el.closest('div, section')).substring(0, 80) });
        }
    });

    const ctas = { primary: null, footer: null };
    const buttons = Array.from(document.querySelectorAll('a, button')).filter(isVisible);
    const keywords = ['get started', 'sign up', 'try', 'explore', 'demo', 'buy', 'start', 'learn', 'watch', 'see', 'view', 'download'];
    const strong = buttons.filter(b => keywords.some(k => b.textContent.toLowerCase().includes(k)));
    const pick = (strong.length ? strong : buttons)[0];
    if (pick) ctas.primary = { text: cleanText(pick) || 'Click Here', action: pick.getAttribute('href') || 'action' };
    const footer = document.querySelector('footer');
    const footerCta = footer ? footer.querySelector('a[class*="button"], button') : null;
    if (footerCta && isVisible(footerCta)) ctas.footer = { text: cleanText(footerCta), action: footerCta.getAttribute('href') || 'action' };

    return { hero, valueProps, painPoints, socialProof: { testimonials, metrics }, ctas };
}
"""
)

SCAN_PAGE = (
    "() => {"
    + _HELPERS
    + """
    const h1 = document.querySelector('h1');
    const visible = Array.from(document.querySelectorAll(
        'button, a[href*="signup"], a[href*="start"], a[href*="try"], .cta, [class*="cta"]'
    )).filter(b => { const r = b.getBoundingClientRect(); return r.top >= 0 && r.top < window.innerHeight && r.width > 0; });
    visible.sort((a, b) => {
        const ra = a.getBoundingClientRect(), rb = b.getBoundingClientRect();
        return rb.width * rb.height - ra.width * ra.height;
    });
    const cta = visible[0] ? { text: cleanText(visible[0]), selector: selectorFor(visible[0], 0) } : null;
    let heroSelector = 'body';
    for (const sel of ['.hero', 'header', '[class*="hero"]', '[id*="hero"]', 'section:first-of-type']) {
        if (document.querySelector(sel)) { heroSelector = sel; break; }
    }

    const scenes = Array.from(document.querySelectorAll('h2, h3')).slice(0, 5).map((heading, idx) => {
        const text = cleanText(heading).toLowerCase();
        let type = 'content';
        if (text.includes('feature') || text.includes('how it works')) type = 'features';
        else if (text.includes('pricing') || text.includes('plan')) type = 'pricing';
        else if (text.includes('demo') || text.includes('example')) type = 'demo';
        else if (text.includes('about') || text.includes('story')) type = 'about';
        return { type, title: cleanText(heading), selector: selectorFor(heading, idx) };
    });

    const interactions = [];
    document.querySelectorAll('button, a, [role="button"], [role="tab"], input[type="submit"]').forEach((el, idx) => {
        const rect = el.getBoundingClientRect();
        const text = cleanText(el).toLowerCase();
        if (!(rect.width > 0 && rect.height > 0 && rect.top >= 0) || text.length < 2) return;
        let score = 0.5;
        if (text.includes('demo') || text.includes('try')) score += 0.3;
        if (text.includes('start') || text.includes('signup')) score += 0.25;
        let intent = 'navigate';
        if (text.includes('demo') || text.includes('example')) intent = 'show_demo';
        else if (text.includes('start') || text.includes('signup')) intent = 'signup';
        interactions.push({ text, selector: selectorFor(el, idx), intent, score: Math.min(score, 1.0) });
    });
    interactions.sort((a, b) => b.score - a.score);

    const meta = (name) => {
        const el = document.querySelector(`meta[name="${name}"], meta[property="${name}"]`);
        return el ? el.getAttribute('content') || '' : '';
    };
    return {
        hero: { selector: heroSelector, h1: h1 ? cleanText(h1) : '', cta },
        scenes,
        interactions: interactions.slice(0, 10),
        metadata: { title: document.title || '', description: meta('description') || meta('og:description') },
    };
}
"""
)

CLICKABLE_ELEMENTS = (
    "() => {"
    + _HELPERS
    + """
    const inViewport = (el) => {
        const r = el.getBoundingClientRect();
        return r.bottom > 0 && r.right > 0 && r.top < window.innerHeight && r.left < window.innerWidth;
    };
    const high = ['try', 'demo', 'playground', 'get started', 'start', 'sign up', 'launch', 'explore'];
    const medium = ['features', 'pricing', 'how it works', 'learn more', 'docs', 'documentation'];
    const found = [];
    Array.from(document.querySelectorAll('button, a[href], [role="button"], [role="tab"]')).forEach((el, idx) => {
        if (!isVisible(el) || !inViewport(el)) return;
        const rect = el.getBoundingClientRect();
        if (rect.width < 60 || rect.height < 20) return;
        const text = (el.innerText || el.textContent || '').toLowerCase().trim();
        if (!text) return;
        let score = 0;
        if (high.some(k => text.includes(k))) score += 10;
        if (medium.some(k => text.includes(k))) score += 5;
        if (rect.top < 150) score += 3;
        score += Math.min(rect.width * rect.height / 5000, 3);
        if (score > 0) found.push({ text, score, selector: selectorFor(el, idx) });
    });
    found.sort((a, b) => b.score - a.score);
    return found.slice(0, 3);
}
"""
)

FORM_FIELDS = """
() => Array.from(document.querySelectorAll(
    'input[type="email"], input[type="search"], input[type="text"], textarea'
)).filter(i => { const r = i.getBoundingClientRect(); return r.width > 0 && r.height > 0; })
  .map(i => ({
      selector: i.id ? `#${CSS.escape(i.id)}` : (i.name ? `[name="${i.name}"]` : null),
      type: i.type || 'text',
      placeholder: i.placeholder || '',
  }))
  .filter(f => f.selector)
  .slice(0, 2)
"""
