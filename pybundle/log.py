import logging

logger = logging.getLogger("pybundle")
