"""wasmbuild: WebAssembly cross-build and dev-shell orchestration for Rust crates."""

__version__ = "0.1.0"
