"""In-page visual cursor overlay.

The overlay follows the synthesized path point by point, in lockstep with the
CDP mouseMoved events. Each helper returns a JavaScript expression for
Runtime.evaluate.
"""

from __future__ import annotations
import json

CURSOR_ELEMENT_ID = "__humanpointer_cursor__"

_CURSOR_PATH_D = (
    "M5.5 3.21V20.8c0 .45.54.67.85.35l4.86-4.86a.5.5 0 0 1 .35-.15h6.87"
    "a.5.5 0 0 0 .35-.85L6.35 2.86a.5.5 0 0 0-.85.35z"
)


def _num(value: float) -> str:
    return json.dumps(round(float(value), 2))


def cursor_create_code(x: float, y: float) -> str:
    """Create (or recreate) the cursor at (x, y) and fade it in."""
    return f"""
    (function() {{
      const existing = document.getElementById({json.dumps(CURSOR_ELEMENT_ID)});
      if (existing) existing.remove();

      const cursor = document.createElement('div');
      cursor.id = {json.dumps(CURSOR_ELEMENT_ID)};
      cursor.style.cssText = 'position:fixed;top:' + {_num(y)} + 'px;left:' + {_num(x)} +
        'px;z-index:2147483647;pointer-events:none;transform:translate(-2px,-2px);opacity:0;';

      const ns = 'http://www.w3.org/2000/svg';
      const svg = document.createElementNS(ns, 'svg');
      svg.setAttribute('width', '24');
      svg.setAttribute('height', '24');
      svg.setAttribute('viewBox', '0 0 24 24');
      svg.setAttribute('fill', 'none');

      const path = document.createElementNS(ns, 'path');
      path.setAttribute('d', {json.dumps(_CURSOR_PATH_D)});
      path.setAttribute('fill', '#000');
      path.setAttribute('stroke', '#fff');
      path.setAttribute('stroke-width', '1.5');
      svg.appendChild(path);
      cursor.appendChild(svg);
      document.body.appendChild(cursor);

      requestAnimationFrame(() => {{
        cursor.style.transition = 'opacity 0.15s ease-out';
        cursor.style.opacity = '1';
      }});
      return {{ created: true }};
    }})()
    """


def cursor_move_code(x: float, y: float) -> str:
    """Jump the cursor to (x, y) with no transition."""
    return f"""
    (function() {{
      const cursor = document.getElementById({json.dumps(CURSOR_ELEMENT_ID)});
      if (cursor) {{
        cursor.style.top = {_num(y)} + 'px';
        cursor.style.left = {_num(x)} + 'px';
      }}
      return {{ moved: !!cursor }};
    }})()
    """


def ripple_code(particle_count: int = 12) -> str:
    """Small particle burst at the cursor's current position."""
    return f"""
    (function() {{
      const cursor = document.getElementById({json.dumps(CURSOR_ELEMENT_ID)});
      if (!cursor) return {{ particles: false }};

      const container = document.createElement('div');
      container.style.cssText = 'position:fixed;top:' + cursor.style.top + ';left:' +
        cursor.style.left + ';width:0;height:0;pointer-events:none;z-index:2147483647;';
      document.body.appendChild(container);

      const colors = ['#ff4d6d', '#ff8fa3', '#ffd166', '#ef476f', '#9b5de5', '#f72585'];
      const count = {int(particle_count)};
      const particles = [];
      for (let i = 0; i < count; i++) {{
        const p = document.createElement('div');
        const angle = (i / count) * Math.PI * 2 + (Math.random() - 0.5) * 0.4;
        const distance = 20 + Math.random() * 25;
        const size = 3 + Math.random() * 4;
        p.style.cssText = 'position:absolute;top:0;left:0;width:' + size + 'px;height:' +
          size + 'px;background:' + colors[Math.floor(Math.random() * colors.length)] +
          ';border-radius:50%;pointer-events:none;transform:translate(-50%,-50%);';
        p.dataset.dx = Math.cos(angle) * distance;
        p.dataset.dy = Math.sin(angle) * distance;
        container.appendChild(p);
        particles.push(p);
      }}

      requestAnimationFrame(() => {{
        particles.forEach(p => {{
          p.style.transition = 'transform 0.35s ease-out, opacity 0.35s ease-out';
          p.style.transform = 'translate(calc(-50% + ' + p.dataset.dx + 'px), calc(-50% + ' +
            p.dataset.dy + 'px)) scale(0.2)';
          p.style.opacity = '0';
        }});
      }});
      setTimeout(() => container.remove(), 400);
      return {{ particles: true, count }};
    }})()
    """


def cursor_remove_code(linger_ms: int) -> str:
    """Fade the cursor out after ``linger_ms`` and remove it."""
    return f"""
    (function() {{
      const cursor = document.getElementById({json.dumps(CURSOR_ELEMENT_ID)});
      if (cursor) {{
        setTimeout(() => {{
          cursor.style.transition = 'opacity 0.2s ease-out';
          cursor.style.opacity = '0';
          setTimeout(() => cursor.remove(), 200);
        }}, {int(linger_ms)});
      }}
      return {{ removing: !!cursor }};
    }})()
    """
