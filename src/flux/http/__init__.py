"""HTTP primitives — request, response writer, headers, forms."""
