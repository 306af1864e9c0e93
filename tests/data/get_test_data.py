"""Generates known-answer key files for Unit Testing."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import os

from cryptography.hazmat.primitives.asymmetric import rsa

import rsakit

target_sizes = [2048, 3072, 4096]

for size in target_sizes:
    if os.path.isfile(f"rsa_{size}.txt"):
        continue
    print(f"Generating new {size} key.")
    pk = rsakit.RSAPrivKey.generate(size)
    # Independent check of both private exponents before persisting.
    assert pk.d3 == rsa.rsa_recover_private_exponent(3, pk.p, pk.q)
    assert pk.d5 == rsa.rsa_recover_private_exponent(5, pk.p, pk.q)
    with open(f"rsa_{size}.txt", "w", encoding="ascii") as f:
        f.write("# p, q, n, d3, d5 (hex)\n")
        for part in pk.as_tuple():
            f.write(f"{part:X}\n")

print("Unit test data up to date.")
