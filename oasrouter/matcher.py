"""Path matching of incoming requests against the specification's path templates."""

import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from .models import REQUESTED_PATH_CONTEXT_KEY, SPEC_CONTEXT_KEY, BaseResponse, Request
from .specification import Specification

logger = logging.getLogger(__name__)


class PathNode:
    """A node in the path template trie.

    Each node represents a path segment and can have:
    - static_children: Dict mapping exact segment strings to child nodes
    - param_child: Single child node for path parameters (e.g., {petId})
    - template: The full path template ending at this node, if any
    """

    def __init__(self):
        self.static_children: Dict[str, "PathNode"] = {}
        self.param_child: Optional[Tuple[str, "PathNode"]] = None
        self.template: Optional[str] = None

    def add_template(self, segments: List[str], template: str) -> None:
        """Add a path template to the trie.

        Args:
            segments: Template segments (e.g., ['pets', '{petId}'])
            template: The original template string
        """
        if not segments:
            self.template = template
            return

        segment = segments[0]
        remaining = segments[1:]

        if segment.startswith('{') and segment.endswith('}'):
            param_name = segment[1:-1]
            if self.param_child is None:
                self.param_child = (param_name, PathNode())
            existing_name, child_node = self.param_child
            if existing_name != param_name:
                logger.debug(
                    f"Template {template} names parameter '{param_name}' where "
                    f"another template uses '{existing_name}'"
                )
            child_node.add_template(remaining, template)
        else:
            if segment not in self.static_children:
                self.static_children[segment] = PathNode()
            self.static_children[segment].add_template(remaining, template)

    def match(self, segments: List[str]) -> Optional[Tuple[str, Dict[str, str]]]:
        """Match request path segments against the trie.

        Returns:
            Tuple of (template, path_params) if matched, None otherwise
        """
        if not segments:
            if self.template is not None:
                return (self.template, {})
            return None

        segment = segments[0]
        remaining = segments[1:]

        # Static segments are more specific than parameters
        if segment in self.static_children:
            result = self.static_children[segment].match(remaining)
            if result:
                return result

        if self.param_child and segment:
            param_name, child_node = self.param_child
            result = child_node.match(remaining)
            if result:
                template, params = result
                params[param_name] = segment
                return (template, params)

        return None


def split_path(path: str) -> List[str]:
    """Split a path into segments, ignoring the leading and trailing slash."""
    stripped = path.strip('/')
    if not stripped:
        return []
    return stripped.split('/')


class PathMatcher:
    """Middleware that matches a request to a specification path template.

    On a match the specification and the template are stored in the request
    context (the router reads them from there) and path parameters are set on
    the request. Unknown paths get a 404, known paths with an undeclared
    method a 405.
    """

    def __init__(self, spec: Specification, base_path: str = ""):
        self.spec = spec
        self.base_path = base_path.rstrip('/')
        self.root = PathNode()
        for template in spec.paths():
            self.root.add_template(split_path(template), template)

    def match(self, path: str) -> Optional[Tuple[str, Dict[str, str]]]:
        if self.base_path:
            if path != self.base_path and not path.startswith(self.base_path + '/'):
                return None
            path = path[len(self.base_path):] or '/'
        return self.root.match(split_path(path))

    def __call__(self, request: Request, response: BaseResponse, next: Callable[..., Any]) -> Any:
        result = self.match(request.path)
        if result is None:
            logger.debug(f"No path template matches {request.path}")
            return response.status(404).send({"error": f"Path {request.path} not found"})

        template, path_params = result
        method = request.method.value.lower()
        if not self.spec.has_operation(template, method):
            allowed = ", ".join(m.upper() for m in self.spec.methods(template))
            logger.debug(f"Method {request.method.value} not declared for {template}")
            response.set_header("Allow", allowed)
            return response.status(405).send(
                {"error": f"Method {request.method.value} not allowed for {request.path}"}
            )

        request.path_params = path_params
        request.context[SPEC_CONTEXT_KEY] = self.spec
        request.context[REQUESTED_PATH_CONTEXT_KEY] = template
        logger.debug(f"Matched {request.method.value} {request.path} to {template}")
        return next()
