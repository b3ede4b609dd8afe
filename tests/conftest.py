# tests/conftest.py
"""Shared JavaScript snippets and fixtures for the loopguard test-suite."""

import re

import pytest

from loopguard.grammar import JS_GRAMMAR


SIMPLE_FOR = "for (let i = 0; i < 10; i++) { console.log(i); }"

SIMPLE_FOR_GUARDED = """\
let loopGuard_1 = 0;
for (let i = 0; i < 10; i++) {
  loopGuard_1++;
  if (loopGuard_1 > 1000) {
    throw new RangeError("loopGuard_1 is greater than 1000");
  }
  console.log(i);
}"""

# One snippet per loop kind; each contains exactly one loop.
LOOP_SNIPPETS = {
    "for": "for (let i = 0; i < 3; i++) { total += i; }",
    "while": "while (n > 0) { n--; }",
    "do-while": "do { n++; } while (n < 10);",
    "for-of": "for (const item of items) { use(item); }",
    "for-in": "for (const key in obj) { use(obj[key]); }",
    "for-await-of": "async function run() { for await (const chunk of stream) { use(chunk); } }",
}

NESTED_LOOPS = """\
for (let i = 0; i < 3; i++) {
  for (let j = 0; j < 3; j++) {
    grid[i][j] = i * j;
  }
}
"""

SIBLING_LOOPS = """\
for (let i = 0; i < 3; i++) { a(i); }
while (x) { x = step(x); }
do { y++; } while (y < 5);
"""

NO_LOOPS = """\
function add(a, b) {
  return a + b;
}
const total = add(1, 2);
"""

MALFORMED_FOR = "for (let i = 0 i < 10; i++) { console.log(i); }"

ALREADY_GUARDED = """\
let loopGuard_1 = 0;
for (let i = 0; i < 10; i++) {
  loopGuard_1++;
  if (loopGuard_1 > 1000) {
    throw new RangeError("loopGuard_1 is greater than 1000");
  }
  console.log(i);
}
"""

SINGLE_LINE_WHILE = "while (x) x = next(x);"

LABELLED_LOOPS = """\
outer: for (const row of rows) {
  inner: for (const cell of row) {
    if (!cell) continue outer;
    if (cell === stop) break inner;
  }
}
"""

MIXED_PROGRAM = """\
class Queue {
  constructor(items = []) {
    this.items = [...items];
  }
  static from(list) {
    return new Queue(list);
  }
  get size() {
    return this.items.length;
  }
  *drain() {
    while (this.items.length) yield this.items.shift();
  }
}

const sum = (xs) => {
  let s = 0;
  for (const x of xs) s += x;
  return s;
};

async function poll(url, { retries = 3, ...rest } = {}) {
  let attempt = 0;
  do {
    try {
      const res = await fetch(`${url}?n=${attempt}`, rest);
      if (res?.ok) return res;
    } catch (err) {
      console.warn(err.message);
    } finally {
      attempt++;
    }
  } while (attempt < retries);
  return null;
}

switch (mode) {
  case "a":
    for (const k in table) delete table[k];
    break;
  default:
    label: while (true) {
      break label;
    }
}
"""

GUARD_NAME_RE = re.compile(r"loopGuard_\d+")


def guard_names(code: str) -> set:
    """Distinct guard identifiers appearing in *code*."""
    return set(GUARD_NAME_RE.findall(code))


@pytest.fixture(scope="session")
def grammar():
    return JS_GRAMMAR
