import logging

import numpy as np

from indexcheck import CheckContext, CheckOptions

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

ctx = CheckContext(CheckOptions(size=True))
matmul = ctx.compile("A[i,j] := B[i,k] * C[k,j]")

B = np.random.rand(2, 3)
C = np.random.rand(3, 2)
print(matmul(B=B, C=C))

ctx.check("info")

# k now has range 5 on both operands: logged at ERROR, evaluation continues
B5 = np.random.rand(2, 5)
C5 = np.random.rand(5, 2)
print(matmul(B=B5, C=C5))

for diagnostic in ctx.diagnostics:
    print(diagnostic.format())
