# Author : Eshan Roy <eshanized@proton.me>
# SPDX-License-Identifier: MIT

"""
Pipeline driver and the shared data model every step speaks.

Steps never decide whether their own failure is fatal. They hand back a
StepResult and the driver looks up how that step is classified.
"""
