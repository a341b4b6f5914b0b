"""

Test indexing and dropping the last axis

"""
import unittest

import torch

from minibatchlib import Core

PRINT_ERRORS = False


class TestIndexLastAxis(unittest.TestCase):
    def test_reshape_path_is_zero_copy(self):
        """Test a trailing singleton axis at index 0 is dropped as a view"""
        tensor = torch.randn([4, 5, 1])
        output = Core.index_last_axis(tensor, 0)

        self.assertEqual(output.shape, torch.Size([4, 5]))
        self.assertEqual(output.data_ptr(), tensor.data_ptr())
        self.assertTrue(torch.equal(output, tensor[..., 0]))

    def test_reshape_path_on_strided_view(self):
        """Test the reshape path works on a non contiguous example view"""
        packed = torch.randn([3, 1, 6])
        example = packed.select(-1, 2)
        output = Core.index_last_axis(example, 0)

        self.assertEqual(output.shape, torch.Size([3]))
        self.assertEqual(output.data_ptr(), example.data_ptr())
        self.assertTrue(torch.equal(output, packed[:, 0, 2]))

    def test_slice_path(self):
        """Test every index of a longer axis gives the matching slice"""
        tensor = torch.randn([2, 3, 4])
        for index in range(4):
            output = Core.index_last_axis(tensor, index)
            self.assertEqual(output.shape, torch.Size([2, 3]))
            self.assertTrue(torch.equal(output, tensor[..., index]))
            self.assertEqual(output.data_ptr(), tensor[..., index].data_ptr())

    def test_rank_one(self):
        tensor = torch.arange(5.0)
        output = Core.index_last_axis(tensor, 3)
        self.assertEqual(output.dim(), 0)
        self.assertEqual(float(output), 3.0)

    def test_sparse(self):
        """Test sparse tensors come back sparse and match the dense result"""
        dense = torch.randn([5, 3]) * (torch.rand([5, 3]) > 0.5)
        sparse = dense.to_sparse()
        for index in range(3):
            output = Core.index_last_axis(sparse, index)
            self.assertTrue(output.is_sparse)
            self.assertEqual(output.shape, torch.Size([5]))
            self.assertTrue(torch.equal(output.to_dense(), dense[:, index]))

    def test_sparse_singleton(self):
        dense = torch.randn([5, 1]) * (torch.rand([5, 1]) > 0.5)
        output = Core.index_last_axis(dense.to_sparse(), 0)
        self.assertTrue(output.is_sparse)
        self.assertTrue(torch.equal(output.to_dense(), dense[:, 0]))

    def test_should_fail(self):
        """Test bad indices and scalars are caught"""
        def should_fail(tensor: torch.Tensor, index: int):
            try:
                Core.index_last_axis(tensor, index, "testing")
                raise RuntimeError("Did not throw exception")
            except Core.AxisDropError as err:
                if PRINT_ERRORS:
                    print(err)

        should_fail(torch.tensor(1.0), 0)
        should_fail(torch.randn([3, 2]), 2)
        should_fail(torch.randn([3, 1]), 1)
        should_fail(torch.randn([3, 2]), -1)
