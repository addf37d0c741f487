"""
jcheck Rules Package

This package contains the checks shipped with jcheck. Checks are registered
with the ``register_module`` decorator and become available once the package
is discovered (``discover_modules(["jcheck_rules"])``).

To add a new check:
1. Create a Python file in this directory (e.g., coding_my_check.py)
2. Subclass ``AbstractCheck`` (tree checks) or ``AbstractFileSetCheck``
3. Decorate the class with ``@register_module``
4. Add its message templates to ``messages.yaml``

Example check structure:

```python
from jcheck.api import AbstractCheck
from jcheck.registry import register_module
from jcheck.tokens import TokenType


@register_module
class EmptyBlockCheck(AbstractCheck):
    def acceptable_tokens(self):
        return [TokenType.SLIST]

    def visit(self, node):
        if node.child_count == 1:
            self.log(node, "block.empty")
```

Configure it by its short name, ``EmptyBlock``.
"""
