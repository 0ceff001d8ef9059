"""In-page JS snippets shared by the browser modules."""

IS_VISIBLE_JS = """
(el) => {
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    return style.display !== 'none' &&
           style.visibility !== 'hidden' &&
           rect.width > 0 &&
           rect.height > 0;
}
"""

# Same as IS_VISIBLE_JS but also rejects cards rendered inside a modal/dialog.
IS_LISTED_JS = """
(el, modalSelector) => {
    const style = window.getComputedStyle(el);
    const rect = el.getBoundingClientRect();
    return style.display !== 'none' &&
           style.visibility !== 'hidden' &&
           rect.width > 0 &&
           rect.height > 0 &&
           !el.closest(modalSelector);
}
"""

SCROLL_HALF_JS = "window.scrollTo(0, document.body.scrollHeight / 2)"
SCROLL_TO_BOTTOM_JS = "window.scrollTo(0, document.body.scrollHeight)"

# Click a point on the overlay backdrop that is NOT covered by the inner dialog.
BACKDROP_CLICK_JS = """
([rootSelector, dialogSelector]) => {
    const root = Array.from(document.querySelectorAll(rootSelector))
        .find((n) => window.getComputedStyle(n).display !== 'none');
    if (!root) return false;
    const dialog = root.querySelector(dialogSelector);
    const r = root.getBoundingClientRect();
    const candidates = [
        [r.left + 5, r.top + 5],
        [r.right - 5, r.top + 5],
        [r.left + 5, r.bottom - 5],
        [r.right - 5, r.bottom - 5],
    ];
    for (const [x, y] of candidates) {
        const target = document.elementFromPoint(x, y) || root;
        if (dialog && dialog.contains(target)) continue;
        const opts = {bubbles: true, cancelable: true, clientX: x, clientY: y};
        target.dispatchEvent(new MouseEvent('mousedown', opts));
        target.dispatchEvent(new MouseEvent('mouseup', opts));
        target.dispatchEvent(new MouseEvent('click', opts));
        return true;
    }
    return false;
}
"""

FORCE_HIDE_JS = """
(rootSelector) => {
    const nodes = document.querySelectorAll(rootSelector);
    if (!nodes.length) return false;
    nodes.forEach((n) => {
        n.style.setProperty('display', 'none', 'important');
        n.style.visibility = 'hidden';
    });
    // element-ui leaves a dimming layer + scroll lock behind
    document.querySelectorAll('.v-modal').forEach((n) => n.remove());
    document.body.classList.remove('el-popup-parent--hidden');
    document.body.style.overflow = '';
    return true;
}
"""
