"""
crosskit - Rust cross-compilation toolchains for Tessel 2.

Installs the cross-compilation SDK and the MIPS standard library matching the
local Rust compiler, then drives cargo to build and bundle binaries.
"""
