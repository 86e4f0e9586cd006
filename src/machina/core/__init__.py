"""
machina core: lexer, parser, IR, errors, configuration and the compiler driver.
"""
