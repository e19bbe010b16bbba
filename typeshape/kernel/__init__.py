"""typeshape kernel: ports, schema engine, configuration, logging and errors."""
