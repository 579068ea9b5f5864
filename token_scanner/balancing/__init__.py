"""Fleet load balancing module."""

from .load_balancer import Endpoint, EndpointLoadBalancer, parse_endpoint_lines

__all__ = ["Endpoint", "EndpointLoadBalancer", "parse_endpoint_lines"]
