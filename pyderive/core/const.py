DERIVED_MODULE_NAME = "derived_gen"
DERIVED_FILENAME = DERIVED_MODULE_NAME + ".py"
CONFIG_FILENAME = "pyderive.json5"
GENERATED_HEADER = "# Code generated by pyderive. DO NOT EDIT."

DEFAULT_MAX_PASSES = 10
