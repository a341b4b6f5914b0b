import unittest
import torch
from minibatchlib.Core import sparse_utils
from minibatchlib.Core.identity import make_identity


def make_sparse_source(shape, dtype=torch.float32) -> torch.Tensor:
    """A dense tensor with about half its entries zeroed"""
    tensor = torch.randn(shape, dtype=dtype)
    mask = torch.rand(shape) > 0.5
    return tensor * mask


class test_calculate_stride(unittest.TestCase):
    def test_calculate_strides(self):
        """tests that the calculate stride function mirrors reality."""
        tensor = torch.randn([10, 20, 30, 40])
        expected = torch.tensor(tensor.stride())
        output = sparse_utils.calculate_shape_strides(tensor.shape)
        self.assertTrue(torch.all(expected == output))

    def test_empty_shape(self):
        output = sparse_utils.calculate_shape_strides([])
        self.assertEqual(output.shape, torch.Size([0]))
        self.assertEqual(output.dtype, torch.int64)


class test_select_and_narrow(unittest.TestCase):
    def test_select(self):
        """Test selecting along any dimension matches dense selection"""
        dense = make_sparse_source([4, 3, 5])
        sparse = dense.to_sparse()
        for dim in range(3):
            for index in range(dense.shape[dim]):
                output = sparse_utils.select_sparse(sparse, dim, index)
                self.assertTrue(torch.equal(output.to_dense(), dense.select(dim, index)))

    def test_narrow(self):
        dense = make_sparse_source([4, 6])
        sparse = dense.to_sparse()
        for length in range(7):
            output = sparse_utils.narrow_sparse(sparse, -1, length)
            self.assertEqual(output.shape, torch.Size([4, length]))
            self.assertTrue(torch.equal(output.to_dense(), dense[:, :length]))


class test_densify(unittest.TestCase):
    def test_sparse_as_matrix(self):
        """Test flattening agrees with a dense reshape"""
        dense = make_sparse_source([4, 3, 2])
        matrix = sparse_utils.sparse_as_matrix(dense.to_sparse())
        self.assertEqual(matrix.shape, torch.Size([4, 6]))
        self.assertTrue(torch.equal(matrix.to_dense(), dense.reshape(4, 6)))

    def test_rank_one_as_matrix(self):
        dense = make_sparse_source([7])
        matrix = sparse_utils.sparse_as_matrix(dense.to_sparse())
        self.assertEqual(matrix.shape, torch.Size([7, 1]))
        self.assertTrue(torch.equal(matrix.to_dense()[:, 0], dense))

    def test_identity_product_is_noop(self):
        """Test eye(n) @ X == X for both supported dtypes and several ranks"""
        for dtype in (torch.float32, torch.float64):
            for shape in ([6], [6, 3], [6, 3, 2]):
                dense = make_sparse_source(shape, dtype)
                identity = make_identity(shape[0], dtype)
                output = sparse_utils.densify(dense.to_sparse(), identity)

                self.assertFalse(output.is_sparse)
                self.assertEqual(output.dtype, dtype)
                self.assertEqual(output.shape, torch.Size(shape))
                self.assertTrue(torch.equal(output, dense))

    def test_empty_sparse(self):
        """Test a sparse tensor holding nothing densifies to zeros"""
        dense = torch.zeros([4, 2])
        output = sparse_utils.densify(dense.to_sparse(), make_identity(4, torch.float32))
        self.assertTrue(torch.equal(output, dense))
